"""CouponValidator — read-only check of a code against an order.

Checks run in a fixed order and the first failure wins. Nothing here
changes usage counts; a coupon is only consumed when its order converts.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Integer, String
from protean.utils.globals import current_domain

from bakery.coupon.coupon import Coupon, normalize_code
from bakery.domain import bakery


class CouponRejection(Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    OUT_OF_WINDOW = "OUT_OF_WINDOW"
    ORDER_TYPE_NOT_ELIGIBLE = "ORDER_TYPE_NOT_ELIGIBLE"
    BELOW_MINIMUM = "BELOW_MINIMUM"
    USES_EXHAUSTED = "USES_EXHAUSTED"


@bakery.value_object
class CouponCheck:
    ok = Boolean(required=True)
    code = String(max_length=50)
    discount_amount = Integer(default=0)
    reason = String(choices=CouponRejection)


def _rejected(code, reason: CouponRejection) -> CouponCheck:
    return CouponCheck(ok=False, code=code, discount_amount=0, reason=reason.value)


def find_coupon(code: str) -> Coupon | None:
    code = normalize_code(code)
    if not code:
        return None
    try:
        return current_domain.repository_for(Coupon).get(code)
    except ObjectNotFoundError:
        return None


def validate_coupon(code: str, order_type, subtotal: int, now: datetime | None = None) -> CouponCheck:
    now = now or datetime.now(UTC)
    normalized = normalize_code(code)

    coupon = find_coupon(normalized)
    if coupon is None:
        return _rejected(normalized, CouponRejection.NOT_FOUND)
    if not coupon.is_active:
        return _rejected(normalized, CouponRejection.INACTIVE)
    if not coupon.is_within_window(now.date()):
        return _rejected(normalized, CouponRejection.OUT_OF_WINDOW)
    if not coupon.applies_to(order_type):
        return _rejected(normalized, CouponRejection.ORDER_TYPE_NOT_ELIGIBLE)
    if subtotal < (coupon.min_order_amount or 0):
        return _rejected(normalized, CouponRejection.BELOW_MINIMUM)
    if coupon.uses_exhausted:
        return _rejected(normalized, CouponRejection.USES_EXHAUSTED)

    return CouponCheck(ok=True, code=normalized, discount_amount=coupon.discount_for(subtotal))

"""Coupon aggregate — discount codes with a window, a usage cap, and eligible order types."""

import json
from datetime import UTC, date, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Integer, String, Text

from bakery.coupon.events import CouponCreated, CouponDeactivated, CouponRedeemed
from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.shared.order_type import OrderType, parse_order_type


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


@bakery.aggregate
class Coupon:
    code = String(identifier=True, max_length=50)
    description = String(max_length=255)
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Integer(required=True, min_value=0)
    min_order_amount = Integer(default=0, min_value=0)
    max_uses = Integer(min_value=1)  # None: unlimited
    current_uses = Integer(default=0, min_value=0)
    valid_from = Date()
    valid_until = Date()
    order_types = Text()  # JSON list of order type values; empty means every type
    is_active = Boolean(default=True)
    created_at = DateTime()

    @invariant.post
    def uses_cannot_exceed_cap(self):
        if self.max_uses is not None and self.current_uses > self.max_uses:
            raise ValidationError({"current_uses": ["Coupon used more times than allowed"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and self.discount_value > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def window_must_be_ordered(self):
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            raise ValidationError({"valid_until": ["Coupon cannot expire before it starts"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        description=None,
        min_order_amount=0,
        max_uses=None,
        valid_from=None,
        valid_until=None,
        order_types=None,
    ):
        code = normalize_code(code)
        if not code:
            raise ValidationError({"code": ["Coupon code is required"]})

        eligible = [parse_order_type(t).value for t in (order_types or [])]
        now = datetime.now(UTC)
        coupon = cls(
            code=code,
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_amount=min_order_amount or 0,
            max_uses=max_uses,
            valid_from=valid_from,
            valid_until=valid_until,
            order_types=json.dumps(eligible) if eligible else None,
            created_at=now,
        )
        coupon.raise_(
            CouponCreated(
                code=code,
                discount_type=discount_type,
                discount_value=discount_value,
                created_at=now,
            )
        )
        return coupon

    @property
    def eligible_order_types(self) -> list[str]:
        return json.loads(self.order_types) if self.order_types else []

    def applies_to(self, order_type) -> bool:
        eligible = self.eligible_order_types
        value = order_type.value if isinstance(order_type, OrderType) else order_type
        return not eligible or value in eligible

    def is_within_window(self, day: date) -> bool:
        if self.valid_from and day < self.valid_from:
            return False
        if self.valid_until and day > self.valid_until:
            return False
        return True

    @property
    def uses_exhausted(self) -> bool:
        return self.max_uses is not None and self.current_uses >= self.max_uses

    def discount_for(self, subtotal: int) -> int:
        """Discount in cents; never more than the subtotal."""
        if subtotal <= 0:
            return 0
        if self.discount_type == DiscountType.PERCENTAGE.value:
            amount = subtotal * self.discount_value // 100
        else:
            amount = self.discount_value
        return min(amount, subtotal)

    def redeem(self, order_id):
        if self.uses_exhausted:
            raise ConflictError(
                {"code": [f"Coupon {self.code} has no uses left"]},
                code="USES_EXHAUSTED",
            )

        self.current_uses += 1
        self.raise_(
            CouponRedeemed(
                code=self.code,
                order_id=str(order_id),
                current_uses=self.current_uses,
                max_uses=self.max_uses,
                redeemed_at=datetime.now(UTC),
            )
        )

    def deactivate(self):
        if not self.is_active:
            return
        self.is_active = False
        self.raise_(CouponDeactivated(code=self.code, deactivated_at=datetime.now(UTC)))

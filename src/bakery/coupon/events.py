"""Domain events for the Coupon aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from bakery.domain import bakery


@bakery.event(part_of="Coupon")
class CouponCreated:
    __version__ = 1

    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Integer(required=True)
    created_at = DateTime(required=True)


@bakery.event(part_of="Coupon")
class CouponRedeemed:
    """One use of the coupon was consumed by a converted order."""

    __version__ = 1

    code = String(required=True)
    order_id = Identifier(required=True)
    current_uses = Integer(required=True)
    max_uses = Integer()
    redeemed_at = DateTime(required=True)


@bakery.event(part_of="Coupon")
class CouponDeactivated:
    __version__ = 1

    code = String(required=True)
    deactivated_at = DateTime(required=True)

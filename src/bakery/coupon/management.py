"""Coupon management — commands and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, Integer, String, Text
from protean.utils.globals import current_domain

from bakery.coupon.coupon import Coupon, normalize_code
from bakery.coupon.validation import find_coupon
from bakery.domain import bakery


@bakery.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    discount_type = String(required=True, max_length=20)
    discount_value = Integer(required=True, min_value=0)
    description = String(max_length=255)
    min_order_amount = Integer(default=0, min_value=0)
    max_uses = Integer(min_value=1)
    valid_from = Date()
    valid_until = Date()
    order_types = Text()  # JSON list, e.g. ["cookies", "cake"]


@bakery.command(part_of="Coupon")
class DeactivateCoupon:
    code = String(required=True, max_length=50)


@bakery.command_handler(part_of=Coupon)
class CouponManagementHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        if find_coupon(command.code) is not None:
            raise ValidationError({"code": [f"Coupon {normalize_code(command.code)} already exists"]})

        coupon = Coupon.create(
            code=command.code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            description=command.description,
            min_order_amount=command.min_order_amount,
            max_uses=command.max_uses,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            order_types=json.loads(command.order_types) if command.order_types else None,
        )
        current_domain.repository_for(Coupon).add(coupon)
        return coupon.code

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(normalize_code(command.code))
        coupon.deactivate()
        repo.add(coupon)

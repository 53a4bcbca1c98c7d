"""Inquiry submission — the start of every order.

A cookie inquiry carries the customer's cart, which is re-validated and
priced here from business settings. When a pickup date and time are given
the slot is reserved (or a hold taken earlier is claimed) in the same unit
of work that stores the order.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from bakery.cart.allocator import price_selection, validate_for_checkout
from bakery.cart.storage import load_selection
from bakery.coupon.coupon import normalize_code
from bakery.coupon.validation import validate_coupon
from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.order.order import Order
from bakery.settings.settings import load_settings
from bakery.shared.order_type import OrderType, parse_order_type
from bakery.slot.reservation import find_slot, take_hold
from bakery.slot.schedule import normalize_time, slot_id_for
from bakery.slot.slot import Slot
from bakery.utils.locks import locks, slot_key

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Order")
class SubmitInquiry:
    order_type = String(required=True, max_length=20)
    customer_name = String(required=True, max_length=150)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(max_length=30)
    requested_date = Date()
    requested_time = String(max_length=5)
    fulfillment = String(default="pickup", max_length=20)
    delivery_address = Text()
    details = Text()  # JSON object, shape chosen by order_type
    cart = Text()  # JSON from dump_selection; cookie orders only
    coupon_code = String(max_length=50)
    hold_id = Identifier()  # Hold reserved ahead of submission
    notes = Text()
    as_of = DateTime()


def _decode_details(raw: str | None) -> dict:
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({"details": ["Details must be valid JSON"]}) from None
    if not isinstance(payload, dict):
        raise ValidationError({"details": ["Details must be an object"]})
    return payload


def _checkout_cart(raw: str | None, now: datetime):
    """Validated selection and its price in cents."""
    selection = load_selection(raw, now)
    if selection is None:
        raise ValidationError({"cart": ["Cart is missing or has expired"]})
    validate_for_checkout(selection)

    settings = load_settings()
    return selection, price_selection(
        selection,
        settings.cookie_price_per_dozen,
        settings.heat_seal_fee_per_dozen,
    )


@bakery.command_handler(part_of=Order)
class InquiryHandler:
    @handle(SubmitInquiry)
    def submit_inquiry(self, command):
        now = command.as_of or datetime.now(UTC)
        order_type = parse_order_type(command.order_type)
        details = _decode_details(command.details)

        if command.requested_time and not command.requested_date:
            raise ValidationError({"requested_date": ["A pickup time needs a pickup date"]})

        subtotal = 0
        if order_type == OrderType.COOKIES:
            if not (command.requested_date and command.requested_time):
                raise ValidationError({"requested_time": ["Cookie orders need a pickup date and time"]})
            selection, subtotal = _checkout_cart(command.cart, now)
            details = {
                **details,
                "dozens": selection.dozens,
                "flavors": selection.flavors,
                "packaging": selection.packaging,
            }
        elif command.cart:
            raise ValidationError({"cart": ["Only cookie orders carry a cart"]})

        coupon_code = normalize_code(command.coupon_code) or None
        discount = 0
        if coupon_code and order_type == OrderType.COOKIES:
            check = validate_coupon(coupon_code, order_type, subtotal, now)
            if not check.ok:
                raise ValidationError({"coupon_code": [f"Coupon {coupon_code} cannot be applied ({check.reason})"]})
            discount = check.discount_amount

        order = Order.submit(
            order_type=order_type,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            customer_phone=command.customer_phone,
            requested_date=command.requested_date,
            requested_time=normalize_time(command.requested_time) if command.requested_time else None,
            fulfillment=command.fulfillment,
            delivery_address=command.delivery_address,
            details=details,
            notes=command.notes,
            total_amount=subtotal - discount,
            coupon_code=coupon_code,
            discount_amount=discount,
        )

        if command.requested_date and command.requested_time:
            if command.hold_id:
                slot = find_slot(slot_id_for(order_type, command.requested_date, command.requested_time))
                if slot is None:
                    raise ConflictError(
                        {"hold_id": [f"Hold {command.hold_id} is not active"]},
                        code="HOLD_NOT_ACTIVE",
                    )
                hold = slot.attach(command.hold_id, order.id)
            else:
                slot, hold = take_hold(
                    order_type,
                    command.requested_date,
                    command.requested_time,
                    order_id=order.id,
                    as_of=now,
                )
            order.hold_slot(slot.slot_id, hold.id)
            current_domain.repository_for(Slot).add(slot)

        order.record_submission()
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Inquiry submitted",
            order_id=str(order.id),
            order_number=order.order_number,
            order_type=order.order_type,
            slot_id=order.slot_id,
            total_amount=order.total_amount,
        )
        return str(order.id)


def submit_inquiry(command: SubmitInquiry) -> str:
    """Process ``command`` under the lock of the slot it asks for."""
    key = None
    if command.requested_date and command.requested_time:
        key = slot_key(slot_id_for(command.order_type, command.requested_date, command.requested_time))
    with locks.hold(key):
        return current_domain.process(command, asynchronous=False)

"""Deposit and balance payments.

``confirm_payment`` takes the order's slot lock and its coupon lock before
processing, so the slot hold is confirmed and the coupon's usage counted
without racing a cancellation or another redemption of the same code.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain

from bakery.coupon.coupon import Coupon
from bakery.coupon.validation import find_coupon, validate_coupon
from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.order.lifecycle import OrderStatus
from bakery.order.notices import announce_confirmation
from bakery.order.order import Order
from bakery.quote.quote import Quote, QuoteStatus
from bakery.slot.reservation import find_slot
from bakery.slot.slot import Slot
from bakery.utils.locks import coupon_key, locks, slot_key

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Order")
class ConfirmPayment:
    """Deposit received for an approved quote."""

    order_id = Identifier(required=True)
    quote_id = Identifier(required=True)
    amount = Integer(required=True, min_value=0)
    as_of = DateTime()


@bakery.command(part_of="Order")
class RecordBalancePayment:
    order_id = Identifier(required=True)
    amount = Integer(required=True, min_value=0)


@bakery.command_handler(part_of=Order)
class PaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        now = command.as_of or datetime.now(UTC)
        order_repo = current_domain.repository_for(Order)
        quote_repo = current_domain.repository_for(Quote)

        order = order_repo.get(command.order_id)
        if OrderStatus(order.status) != OrderStatus.PENDING_PAYMENT:
            raise ConflictError(
                {"status": [f"Order {order.order_number} is {order.status}, not awaiting a deposit"]},
                code="ILLEGAL_TRANSITION",
            )

        quote = quote_repo.get(command.quote_id)
        if str(quote.order_id) != str(order.id):
            raise ValidationError({"quote_id": ["Quote does not belong to this order"]})
        if QuoteStatus(quote.status) != QuoteStatus.APPROVED:
            raise ConflictError(
                {"quote_id": [f"Quote {quote.quote_number} is {quote.status}, not approved"]},
                code="INVALID_QUOTE_STATE",
            )
        if command.amount != quote.deposit_amount:
            raise ValidationError(
                {"amount": [f"Deposit due is {quote.deposit_amount}, received {command.amount}"]}
            )

        discount = 0
        if order.coupon_code:
            check = validate_coupon(order.coupon_code, order.order_type, quote.subtotal, now)
            if check.ok:
                coupon = find_coupon(order.coupon_code)
                coupon.redeem(order.id)
                current_domain.repository_for(Coupon).add(coupon)
                discount = check.discount_amount
            else:
                logger.warning(
                    "Coupon dropped at payment",
                    order_id=str(order.id),
                    coupon_code=order.coupon_code,
                    reason=check.reason,
                )

        quote.convert()
        order.record_deposit(quote.id, command.amount, quote.subtotal, discount)

        if order.slot_id:
            slot = find_slot(order.slot_id)
            if slot is not None:
                slot.confirm(order.slot_hold_id)
                current_domain.repository_for(Slot).add(slot)

        quote_repo.add(quote)
        order_repo.add(order)

        logger.info(
            "Deposit recorded",
            order_id=str(order.id),
            quote_id=str(quote.id),
            amount=command.amount,
            discount_amount=discount,
            status=order.status,
        )
        if OrderStatus(order.status) == OrderStatus.CONFIRMED:
            announce_confirmation(order)
        return order.status

    @handle(RecordBalancePayment)
    def record_balance_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_balance_payment(command.amount)
        repo.add(order)
        logger.info("Balance recorded", order_id=str(order.id), amount=command.amount)


def confirm_payment(order_id, quote_id, amount, as_of=None) -> str:
    """Record the deposit under the order's slot and coupon locks. Returns the new order status."""
    order = current_domain.repository_for(Order).get(order_id)
    with locks.hold(slot_key(order.slot_id), coupon_key(order.coupon_code)):
        return current_domain.process(
            ConfirmPayment(order_id=order_id, quote_id=quote_id, amount=amount, as_of=as_of),
            asynchronous=False,
        )

"""Order aggregate — one customer order from inquiry to pickup.

Status only changes through ``_advance``, which consults the transition
table in ``bakery.order.lifecycle``. The order remembers which slot hold it
owns so that cancelling it can give the capacity back in the same unit of
work.

Money fields are integer cents:
    total_amount:    what the customer owes overall (after any discount)
    deposit_amount:  due to move from pending_payment to deposit_paid
    balance_amount:  remainder collected before fulfillment
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, DateTime, Identifier, Integer, String, Text, ValueObject

from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.order.details import build_details, dump_details, load_details
from bakery.order.events import (
    BalancePaymentRecorded,
    DepositRecorded,
    InquirySubmitted,
    OrderCancelled,
    OrderStatusChanged,
)
from bakery.order.lifecycle import OrderEvent, OrderStatus, can_apply, next_status
from bakery.shared.contact import CustomerContact
from bakery.shared.numbers import order_number
from bakery.shared.order_type import OrderType, parse_order_type


class Fulfillment(Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


@bakery.aggregate
class Order:
    order_number = String(required=True, max_length=20)
    order_type = String(required=True, choices=OrderType)
    status = String(choices=OrderStatus, default=OrderStatus.INQUIRY.value)
    customer = ValueObject(CustomerContact, required=True)
    requested_date = Date()
    requested_time = String(max_length=5)
    fulfillment = String(choices=Fulfillment, default=Fulfillment.PICKUP.value)
    delivery_address = Text()
    details = Text()  # JSON, shape chosen by order_type
    notes = Text()

    total_amount = Integer(default=0, min_value=0)
    deposit_amount = Integer(default=0, min_value=0)
    balance_amount = Integer(default=0, min_value=0)
    coupon_code = String(max_length=50)
    discount_amount = Integer(default=0, min_value=0)

    slot_id = String(max_length=64)
    slot_hold_id = Identifier()
    quote_id = Identifier()  # last approved quote
    contract_id = Identifier()
    contract_signed = Boolean(default=False)

    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()
    deposit_paid_at = DateTime()
    balance_paid_at = DateTime()
    confirmed_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()

    @invariant.post
    def delivery_needs_an_address(self):
        if self.fulfillment == Fulfillment.DELIVERY.value and not (self.delivery_address or "").strip():
            raise ValidationError({"delivery_address": ["Delivery orders need a delivery address"]})

    @invariant.post
    def hold_and_slot_go_together(self):
        if bool(self.slot_id) != bool(self.slot_hold_id):
            raise ValidationError({"slot_id": ["Slot and hold must be set together"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def submit(
        cls,
        order_type,
        customer_name,
        customer_email,
        customer_phone=None,
        requested_date=None,
        requested_time=None,
        fulfillment=Fulfillment.PICKUP.value,
        delivery_address=None,
        details=None,
        notes=None,
        total_amount=0,
        coupon_code=None,
        discount_amount=0,
    ):
        order_type = parse_order_type(order_type)
        order_details = build_details(order_type, details)
        now = datetime.now(UTC)

        order = cls(
            order_number=order_number(now),
            order_type=order_type.value,
            customer=CustomerContact(name=customer_name, email=customer_email, phone=customer_phone),
            requested_date=requested_date,
            requested_time=requested_time,
            fulfillment=fulfillment or Fulfillment.PICKUP.value,
            delivery_address=delivery_address,
            details=dump_details(order_details),
            notes=notes,
            total_amount=total_amount,
            coupon_code=coupon_code,
            discount_amount=discount_amount,
            created_at=now,
            updated_at=now,
        )
        return order

    def record_submission(self):
        self.raise_(
            InquirySubmitted(
                order_id=str(self.id),
                order_number=self.order_number,
                order_type=self.order_type,
                customer_email=self.customer.email,
                requested_date=self.requested_date,
                requested_time=self.requested_time,
                slot_id=self.slot_id,
                total_amount=self.total_amount,
                submitted_at=self.created_at,
            )
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @property
    def order_details(self):
        return load_details(self.order_type, self.details)

    @property
    def is_wedding(self) -> bool:
        return self.order_type == OrderType.WEDDING.value

    def _advance(self, event: OrderEvent):
        current = self.status
        target = next_status(current, event)
        now = datetime.now(UTC)

        self.status = target.value
        self.updated_at = now
        if target == OrderStatus.CONFIRMED:
            self.confirmed_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=current,
                to_status=target.value,
                trigger=event.value,
                changed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Slot
    # -------------------------------------------------------------------
    def hold_slot(self, slot_id, hold_id):
        if self.slot_hold_id:
            raise ConflictError({"slot_id": ["Order already holds a slot"]}, code="SLOT_ALREADY_HELD")
        with atomic_change(self):
            self.slot_id = slot_id
            self.slot_hold_id = str(hold_id)

    def drop_slot(self):
        with atomic_change(self):
            self.slot_id = None
            self.slot_hold_id = None

    # -------------------------------------------------------------------
    # Quote and contract signals
    # -------------------------------------------------------------------
    def quote_sent(self):
        self._advance(OrderEvent.QUOTE_SENT)

    def quote_approved(self, quote_id):
        if OrderStatus(self.status) != OrderStatus.PENDING_PAYMENT:
            raise ConflictError(
                {"status": [f"Order in {self.status} is not awaiting a quote decision"]},
                code="ILLEGAL_TRANSITION",
            )
        self.quote_id = str(quote_id)
        self.updated_at = datetime.now(UTC)

    def attach_contract(self, contract_id):
        if not self.is_wedding:
            raise ValidationError({"order_id": ["Contracts are only issued for wedding orders"]})
        if OrderStatus(self.status) in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
            raise ConflictError({"status": [f"Order is already {self.status}"]}, code="ILLEGAL_TRANSITION")
        self.contract_id = str(contract_id)
        self.contract_signed = False

    def contract_signed_notice(self, contract_id):
        """Record the signature; confirms the order if the deposit is already in."""
        if str(self.contract_id) != str(contract_id):
            raise ConflictError({"contract_id": ["Contract does not belong to this order"]}, code="CONTRACT_MISMATCH")
        self.contract_signed = True
        if can_apply(self.status, OrderEvent.CONTRACT_SIGNED):
            self._advance(OrderEvent.CONTRACT_SIGNED)

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------
    def record_deposit(self, quote_id, amount, subtotal, discount_amount=0):
        """Deposit received against an approved quote.

        Non-wedding orders confirm immediately; weddings confirm here only
        if their contract was signed first.
        """
        self._advance(OrderEvent.DEPOSIT_PAID)

        now = datetime.now(UTC)
        total = max(subtotal - discount_amount, 0)
        self.quote_id = str(quote_id)
        self.discount_amount = discount_amount
        self.total_amount = total
        self.deposit_amount = amount
        self.balance_amount = max(total - amount, 0)
        self.deposit_paid_at = now

        self.raise_(
            DepositRecorded(
                order_id=str(self.id),
                quote_id=str(quote_id),
                amount=amount,
                total_amount=total,
                discount_amount=discount_amount,
                balance_amount=self.balance_amount,
                paid_at=now,
            )
        )

        if not self.is_wedding:
            self._advance(OrderEvent.CONFIRM)
        elif self.contract_signed:
            self._advance(OrderEvent.CONTRACT_SIGNED)

    def record_balance_payment(self, amount):
        if OrderStatus(self.status) not in (OrderStatus.DEPOSIT_PAID, OrderStatus.CONFIRMED):
            raise ConflictError(
                {"status": [f"Cannot take a balance payment on an order in {self.status}"]},
                code="ILLEGAL_TRANSITION",
            )
        if self.balance_paid_at is not None:
            raise ConflictError({"amount": ["Balance already paid"]}, code="BALANCE_ALREADY_PAID")
        if amount != self.balance_amount:
            raise ValidationError({"amount": [f"Expected balance of {self.balance_amount}, received {amount}"]})

        now = datetime.now(UTC)
        self.balance_paid_at = now
        self.updated_at = now
        self.raise_(BalancePaymentRecorded(order_id=str(self.id), amount=amount, paid_at=now))

    # -------------------------------------------------------------------
    # Completion and cancellation
    # -------------------------------------------------------------------
    def complete(self):
        self._advance(OrderEvent.FULFILLED)
        self.completed_at = self.updated_at

    def cancel(self, reason):
        if not reason:
            raise ValidationError({"reason": ["A cancellation reason is required"]})

        previous = self.status
        released_slot = self.slot_id
        self._advance(OrderEvent.CANCEL)
        self.cancellation_reason = reason
        self.cancelled_at = self.updated_at
        self.drop_slot()

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                previous_status=previous,
                released_slot_id=released_slot,
                cancelled_at=self.cancelled_at,
            )
        )

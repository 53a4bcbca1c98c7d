"""Order state machine — the one place order status transitions are defined.

Every status change goes through ``next_status``. A (status, event) pair
missing from ``TRANSITIONS`` is an illegal move and raises ConflictError.
"""

from enum import Enum

from bakery.errors import ConflictError


class OrderStatus(Enum):
    INQUIRY = "inquiry"
    PENDING_PAYMENT = "pending_payment"
    DEPOSIT_PAID = "deposit_paid"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderEvent(Enum):
    QUOTE_SENT = "quote_sent"
    DEPOSIT_PAID = "deposit_paid"
    CONTRACT_SIGNED = "contract_signed"
    CONFIRM = "confirm"
    FULFILLED = "fulfilled"
    CANCEL = "cancel"


TERMINAL_STATES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

TRANSITIONS: dict[tuple[OrderStatus, OrderEvent], OrderStatus] = {
    (OrderStatus.INQUIRY, OrderEvent.QUOTE_SENT): OrderStatus.PENDING_PAYMENT,
    # A revised quote is re-sent without leaving pending_payment
    (OrderStatus.PENDING_PAYMENT, OrderEvent.QUOTE_SENT): OrderStatus.PENDING_PAYMENT,
    (OrderStatus.PENDING_PAYMENT, OrderEvent.DEPOSIT_PAID): OrderStatus.DEPOSIT_PAID,
    (OrderStatus.DEPOSIT_PAID, OrderEvent.CONTRACT_SIGNED): OrderStatus.CONFIRMED,
    (OrderStatus.DEPOSIT_PAID, OrderEvent.CONFIRM): OrderStatus.CONFIRMED,
    (OrderStatus.CONFIRMED, OrderEvent.FULFILLED): OrderStatus.COMPLETED,
    **{
        (status, OrderEvent.CANCEL): OrderStatus.CANCELLED
        for status in OrderStatus
        if status not in TERMINAL_STATES
    },
}


def can_apply(status, event: OrderEvent) -> bool:
    return (OrderStatus(status), event) in TRANSITIONS


def next_status(status, event: OrderEvent) -> OrderStatus:
    current = OrderStatus(status)
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise ConflictError(
            {"status": [f"Cannot apply {event.value} to an order in {current.value}"]},
            code="ILLEGAL_TRANSITION",
        ) from None

"""Domain events for the Order aggregate."""

from protean.fields import Date, DateTime, Identifier, Integer, String

from bakery.domain import bakery


@bakery.event(part_of="Order")
class InquirySubmitted:
    """A customer submitted an order inquiry."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    order_type = String(required=True)
    customer_email = String(required=True)
    requested_date = Date()
    requested_time = String()
    slot_id = String()
    total_amount = Integer(required=True)
    submitted_at = DateTime(required=True)


@bakery.event(part_of="Order")
class OrderStatusChanged:
    """The order moved through the state machine."""

    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    trigger = String(required=True)
    changed_at = DateTime(required=True)


@bakery.event(part_of="Order")
class DepositRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    quote_id = Identifier(required=True)
    amount = Integer(required=True)
    total_amount = Integer(required=True)
    discount_amount = Integer(required=True)
    balance_amount = Integer(required=True)
    paid_at = DateTime(required=True)


@bakery.event(part_of="Order")
class BalancePaymentRecorded:
    __version__ = 1

    order_id = Identifier(required=True)
    amount = Integer(required=True)
    paid_at = DateTime(required=True)


@bakery.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    previous_status = String(required=True)
    released_slot_id = String()
    cancelled_at = DateTime(required=True)

"""Customer notices sent from the order flow."""

from bakery.notifications import notify
from bakery.notifications.port import NotificationTemplate


def order_summary(order) -> dict:
    return {
        "order_id": str(order.id),
        "order_number": order.order_number,
        "order_type": order.order_type,
        "status": order.status,
        "customer_name": order.customer.name,
        "requested_date": order.requested_date.isoformat() if order.requested_date else None,
        "requested_time": order.requested_time,
        "total_amount": order.total_amount,
        "deposit_amount": order.deposit_amount,
        "balance_amount": order.balance_amount,
        "discount_amount": order.discount_amount,
    }


def announce_confirmation(order) -> None:
    notify(NotificationTemplate.ORDER_CONFIRMED, order.customer.email, order_summary(order))


def announce_cancellation(order, previous_status: str) -> None:
    notify(
        NotificationTemplate.ORDER_CANCELLED,
        order.customer.email,
        {
            **order_summary(order),
            "previous_status": previous_status,
            "reason": order.cancellation_reason,
        },
    )

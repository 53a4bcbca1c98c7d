"""Order cancellation.

The order and the slot it held are saved in the same unit of work, so a
cancelled order never keeps capacity and capacity is never returned for an
order that is still live.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.order.notices import announce_cancellation
from bakery.order.order import Order
from bakery.slot.reservation import find_slot
from bakery.slot.slot import Slot
from bakery.utils.locks import locks, slot_key

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


@bakery.command_handler(part_of=Order)
class CancellationHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        previous_status = order.status
        slot_id, hold_id = order.slot_id, order.slot_hold_id
        order.cancel(command.reason)

        if slot_id:
            slot = find_slot(slot_id)
            if slot is not None and slot.release(hold_id=hold_id, reason="order_cancelled") is not None:
                current_domain.repository_for(Slot).add(slot)

        repo.add(order)
        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            previous_status=previous_status,
            released_slot_id=slot_id,
        )
        announce_cancellation(order, previous_status)


def cancel_order(order_id, reason) -> None:
    """Cancel under the lock of the slot the order holds."""
    order = current_domain.repository_for(Order).get(order_id)
    with locks.hold(slot_key(order.slot_id)):
        current_domain.process(CancelOrder(order_id=order_id, reason=reason), asynchronous=False)

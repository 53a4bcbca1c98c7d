from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.order.order import Order


@bakery.command(part_of="Order")
class CompleteOrder:
    """The order was picked up or delivered."""

    order_id = Identifier(required=True)


@bakery.command_handler(part_of=Order)
class CompletionHandler:
    @handle(CompleteOrder)
    def complete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.complete()
        repo.add(order)

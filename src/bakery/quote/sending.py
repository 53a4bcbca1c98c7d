"""Sending a quote — the customer now owes a deposit."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.notifications import notify
from bakery.notifications.port import NotificationTemplate
from bakery.order.order import Order
from bakery.quote.quote import Quote

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Quote")
class SendQuote:
    quote_id = Identifier(required=True)


@bakery.command_handler(part_of=Quote)
class SendQuoteHandler:
    @handle(SendQuote)
    def send_quote(self, command):
        quote_repo = current_domain.repository_for(Quote)
        order_repo = current_domain.repository_for(Order)

        quote = quote_repo.get(command.quote_id)
        order = order_repo.get(quote.order_id)

        quote.send()
        order.quote_sent()

        quote_repo.add(quote)
        order_repo.add(order)

        notify(
            NotificationTemplate.QUOTE_SENT,
            order.customer.email,
            {
                **quote.snapshot(),
                "order_number": order.order_number,
                "order_type": order.order_type,
                "customer_name": order.customer.name,
            },
        )
        logger.info(
            "Quote sent",
            quote_id=str(quote.id),
            order_id=str(order.id),
            subtotal=quote.subtotal,
            deposit_amount=quote.deposit_amount,
        )

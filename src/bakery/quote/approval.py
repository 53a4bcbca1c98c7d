"""Quote approval and expiry — commands and handler."""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.order.order import Order
from bakery.quote.quote import Quote

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Quote")
class ApproveQuote:
    """Customer accepts a sent quote."""

    quote_id = Identifier(required=True)
    approval_token = String(max_length=64)  # Checked when given (customer link)
    as_of = DateTime()  # Optional: defaults to now


@bakery.command(part_of="Quote")
class ExpireQuote:
    quote_id = Identifier(required=True)
    as_of = DateTime()


@bakery.command_handler(part_of=Quote)
class QuoteApprovalHandler:
    @handle(ApproveQuote)
    def approve_quote(self, command):
        quote_repo = current_domain.repository_for(Quote)
        order_repo = current_domain.repository_for(Order)

        quote = quote_repo.get(command.quote_id)
        order = order_repo.get(quote.order_id)

        quote.approve(as_of=command.as_of or datetime.now(UTC), approval_token=command.approval_token)
        order.quote_approved(quote.id)

        quote_repo.add(quote)
        order_repo.add(order)
        logger.info("Quote approved", quote_id=str(quote.id), order_id=str(order.id))

    @handle(ExpireQuote)
    def expire_quote(self, command):
        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)
        expired = quote.mark_expired(command.as_of or datetime.now(UTC))
        if expired:
            repo.add(quote)
            logger.info("Quote expired", quote_id=str(quote.id), valid_until=quote.valid_until.isoformat())
        return expired

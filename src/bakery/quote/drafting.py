"""Quote drafting — create a quote, replace its line items, adjust its terms."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, Identifier, Integer, Text
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.order.lifecycle import TERMINAL_STATES, OrderStatus
from bakery.order.order import Order
from bakery.quote.quote import Quote
from bakery.settings.settings import load_settings


@bakery.command(part_of="Quote")
class CreateQuote:
    """Open a draft quote for an order. Omitted terms come from business settings."""

    order_id = Identifier(required=True)
    deposit_percentage = Integer(min_value=0, max_value=100)
    valid_days = Integer(min_value=1)


@bakery.command(part_of="Quote")
class SetLineItems:
    """Replace all line items of a quote."""

    quote_id = Identifier(required=True)
    line_items = Text(required=True)  # JSON list of {description, quantity, unit_price[, sort_order]}


@bakery.command(part_of="Quote")
class UpdateQuoteTerms:
    quote_id = Identifier(required=True)
    deposit_percentage = Integer(min_value=0, max_value=100)
    valid_until = Date()
    notes = Text()
    customer_message = Text()


@bakery.command_handler(part_of=Quote)
class QuoteDraftingHandler:
    @handle(CreateQuote)
    def create_quote(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if OrderStatus(order.status) in TERMINAL_STATES:
            raise ConflictError(
                {"order_id": [f"Order {order.order_number} is {order.status}"]},
                code="ILLEGAL_TRANSITION",
            )

        settings = load_settings()
        deposit_percentage = command.deposit_percentage
        if deposit_percentage is None:
            deposit_percentage = settings.deposit_percentage

        quote = Quote.create(
            order_id=order.id,
            deposit_percentage=deposit_percentage,
            valid_days=command.valid_days or settings.quote_validity_days,
        )
        current_domain.repository_for(Quote).add(quote)
        return str(quote.id)

    @handle(SetLineItems)
    def set_line_items(self, command):
        try:
            items = json.loads(command.line_items)
        except json.JSONDecodeError:
            raise ValidationError({"line_items": ["Line items must be valid JSON"]}) from None
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise ValidationError({"line_items": ["Line items must be a list of objects"]})

        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)
        quote.set_line_items(items)
        repo.add(quote)

    @handle(UpdateQuoteTerms)
    def update_terms(self, command):
        repo = current_domain.repository_for(Quote)
        quote = repo.get(command.quote_id)
        quote.update_terms(
            deposit_percentage=command.deposit_percentage,
            valid_until=command.valid_until,
            notes=command.notes,
            customer_message=command.customer_message,
        )
        repo.add(quote)

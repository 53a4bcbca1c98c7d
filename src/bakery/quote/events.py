"""Domain events for the Quote aggregate."""

from protean.fields import Date, DateTime, Identifier, Integer, String

from bakery.domain import bakery


@bakery.event(part_of="Quote")
class QuoteCreated:
    __version__ = 1

    quote_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quote_number = String(required=True)
    deposit_percentage = Integer(required=True)
    valid_until = Date(required=True)
    created_at = DateTime(required=True)


@bakery.event(part_of="Quote")
class QuoteRepriced:
    """Line items or terms changed and totals were recomputed."""

    __version__ = 1

    quote_id = Identifier(required=True)
    line_item_count = Integer(required=True)
    subtotal = Integer(required=True)
    deposit_percentage = Integer(required=True)
    deposit_amount = Integer(required=True)
    balance_amount = Integer(required=True)
    repriced_at = DateTime(required=True)


@bakery.event(part_of="Quote")
class QuoteSent:
    __version__ = 1

    quote_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quote_number = String(required=True)
    subtotal = Integer(required=True)
    deposit_amount = Integer(required=True)
    valid_until = Date(required=True)
    sent_at = DateTime(required=True)


@bakery.event(part_of="Quote")
class QuoteApproved:
    __version__ = 1

    quote_id = Identifier(required=True)
    order_id = Identifier(required=True)
    approved_at = DateTime(required=True)


@bakery.event(part_of="Quote")
class QuoteExpired:
    __version__ = 1

    quote_id = Identifier(required=True)
    order_id = Identifier(required=True)
    valid_until = Date(required=True)
    expired_at = DateTime(required=True)


@bakery.event(part_of="Quote")
class QuoteConverted:
    """The deposit for this quote was paid."""

    __version__ = 1

    quote_id = Identifier(required=True)
    order_id = Identifier(required=True)
    deposit_amount = Integer(required=True)
    converted_at = DateTime(required=True)

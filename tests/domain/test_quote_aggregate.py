from datetime import UTC, date, datetime, timedelta

import pytest
from bakery.errors import ConflictError, ExpiredError
from bakery.quote.events import QuoteRepriced
from bakery.quote.quote import Quote, QuoteStatus, deposit_for
from protean.exceptions import ValidationError

TODAY = date(2026, 2, 1)
CAKE_ITEMS = [
    {"description": "Three-tier cake", "quantity": 1, "unit_price": 12000},
    {"description": "Delivery", "quantity": 2, "unit_price": 1500},
]


def _quote(deposit_percentage=50, valid_days=7):
    return Quote.create(order_id="ord-1", deposit_percentage=deposit_percentage, valid_days=valid_days, today=TODAY)


def _sent_quote():
    quote = _quote()
    quote.set_line_items(CAKE_ITEMS)
    quote.send()
    return quote


def _on(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, 15, 0, tzinfo=UTC)


class TestCreate:
    def test_draft_with_number_and_token(self):
        quote = _quote()
        assert quote.status == QuoteStatus.DRAFT.value
        assert quote.quote_number.startswith("Q-")
        assert quote.approval_token
        assert quote.valid_until == TODAY + timedelta(days=7)

    def test_validity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _quote(valid_days=0)


class TestLineItems:
    def test_totals_for_cake_quote(self):
        quote = _quote()
        quote.set_line_items(CAKE_ITEMS)

        assert quote.subtotal == 15000
        assert quote.deposit_amount == 7500
        assert quote.balance_amount == 7500
        assert [item.total_price for item in quote.sorted_line_items] == [12000, 3000]
        assert isinstance(quote._events[-1], QuoteRepriced)

    def test_replacement_is_total(self):
        quote = _quote()
        quote.set_line_items(CAKE_ITEMS)
        quote.set_line_items([{"description": "Tasting box", "quantity": 1, "unit_price": 4500}])

        assert len(quote.line_items) == 1
        assert quote.subtotal == 4500

    def test_invalid_item_changes_nothing(self):
        quote = _quote()
        quote.set_line_items(CAKE_ITEMS)

        with pytest.raises(ValidationError) as exc:
            quote.set_line_items(
                [
                    {"description": "Cupcakes", "quantity": 24, "unit_price": 350},
                    {"description": "", "quantity": -1, "unit_price": 100},
                ]
            )

        assert len(exc.value.messages["line_items"]) == 2
        assert quote.subtotal == 15000
        assert len(quote.line_items) == 2

    @pytest.mark.parametrize(
        "subtotal, percentage, expected",
        [(15000, 50, 7500), (999, 50, 500), (1001, 33, 330), (0, 50, 0), (12345, 100, 12345)],
    )
    def test_deposit_rounds_half_up(self, subtotal, percentage, expected):
        assert deposit_for(subtotal, percentage) == expected

    def test_terms_change_recomputes_deposit(self):
        quote = _quote()
        quote.set_line_items(CAKE_ITEMS)
        quote.update_terms(deposit_percentage=25, customer_message="See you soon")

        assert quote.deposit_amount == 3750
        assert quote.balance_amount == 11250
        assert quote.customer_message == "See you soon"

    def test_converted_quote_cannot_be_edited(self):
        quote = _sent_quote()
        quote.approve(_on(TODAY))
        quote.convert()

        with pytest.raises(ConflictError) as exc:
            quote.set_line_items(CAKE_ITEMS)
        assert exc.value.code == "INVALID_QUOTE_STATE"


class TestSend:
    def test_send_requires_items(self):
        with pytest.raises(ValidationError):
            _quote().send()

    def test_sent_quote_can_be_resent(self):
        quote = _sent_quote()
        quote.set_line_items(CAKE_ITEMS[:1])
        quote.send()
        assert quote.status == QuoteStatus.SENT.value
        assert quote.subtotal == 12000


class TestApprove:
    def test_approve_on_last_valid_day(self):
        quote = _sent_quote()
        quote.approve(_on(quote.valid_until))
        assert quote.status == QuoteStatus.APPROVED.value

    def test_approve_after_validity_fails_and_keeps_status(self):
        quote = _sent_quote()

        with pytest.raises(ExpiredError) as exc:
            quote.approve(_on(quote.valid_until + timedelta(days=1)))

        assert exc.value.code == "QUOTE_EXPIRED"
        assert quote.status == QuoteStatus.SENT.value

    def test_approving_draft_is_a_conflict(self):
        with pytest.raises(ConflictError):
            _quote().approve(_on(TODAY))

    def test_wrong_token_rejected(self):
        quote = _sent_quote()
        with pytest.raises(ValidationError):
            quote.approve(_on(TODAY), approval_token="guess")

    def test_matching_token_accepted(self):
        quote = _sent_quote()
        quote.approve(_on(TODAY), approval_token=quote.approval_token)
        assert quote.status == QuoteStatus.APPROVED.value


class TestExpire:
    def test_mark_expired_is_idempotent(self):
        quote = _sent_quote()
        later = _on(quote.valid_until + timedelta(days=1))

        assert quote.mark_expired(later) is True
        assert quote.mark_expired(later) is False
        assert quote.status == QuoteStatus.EXPIRED.value

    def test_not_expired_before_validity_ends(self):
        quote = _sent_quote()
        assert quote.mark_expired(_on(quote.valid_until)) is False

    def test_expired_quote_cannot_be_approved(self):
        quote = _sent_quote()
        quote.mark_expired(_on(quote.valid_until + timedelta(days=1)))

        with pytest.raises(ExpiredError):
            quote.approve(_on(TODAY))


class TestSnapshot:
    def test_snapshot_is_structured_data(self):
        snapshot = _sent_quote().snapshot()
        assert snapshot["subtotal"] == 15000
        assert snapshot["line_items"][1] == {
            "description": "Delivery",
            "quantity": 2,
            "unit_price": 1500,
            "total_price": 3000,
        }
        assert snapshot["valid_until"] == (TODAY + timedelta(days=7)).isoformat()

import json
from datetime import UTC, date, datetime

import pytest
from bakery.cart.allocator import add_increment, empty_selection, set_packaging, set_target_units
from bakery.cart.storage import dump_selection
from bakery.order.inquiry import SubmitInquiry, submit_inquiry
from bakery.quote.approval import ApproveQuote
from bakery.quote.drafting import CreateQuote, SetLineItems
from bakery.quote.sending import SendQuote
from protean.utils.globals import current_domain

AS_OF = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)
SLOT_DAY = date(2026, 3, 1)  # a Sunday: 09:00-12:00

CAKE_DETAILS = {"occasion": "Birthday", "size": "8 inch", "shape": "round", "flavor": "vanilla"}
WEDDING_DETAILS = {
    "wedding_date": "2026-09-12",
    "guest_count": 120,
    "services_needed": "cake and cookies",
    "venue_name": "Rose Hall",
}


@pytest.fixture()
def cookie_cart():
    """One dozen chocolate chip, held client side since ``AS_OF``."""

    def _cart(packaging="standard"):
        selection = set_target_units(empty_selection(), 1)
        selection = add_increment(selection, "chocolate_chip")
        selection = add_increment(selection, "chocolate_chip")
        selection = set_packaging(selection, packaging)
        return json.dumps(dump_selection(selection, now=AS_OF))

    return _cart


@pytest.fixture()
def place_inquiry():
    def _place(order_type="cake", **overrides):
        kwargs = {
            "order_type": order_type,
            "customer_name": "Ada Baker",
            "customer_email": "ada@example.com",
            "details": json.dumps(WEDDING_DETAILS if order_type == "wedding" else CAKE_DETAILS),
            "as_of": AS_OF,
        }
        if order_type == "cake":
            kwargs.update(requested_date=SLOT_DAY, requested_time="10:00")
        kwargs.update(overrides)
        return submit_inquiry(SubmitInquiry(**kwargs))

    return _place


@pytest.fixture()
def quote_order():
    """Draft, price and send a quote; approve it unless told otherwise."""

    def _quote(order_id, unit_price=15000, approve=True):
        quote_id = current_domain.process(CreateQuote(order_id=order_id), asynchronous=False)
        current_domain.process(
            SetLineItems(
                quote_id=quote_id,
                line_items=json.dumps([{"description": "Celebration order", "quantity": 1, "unit_price": unit_price}]),
            ),
            asynchronous=False,
        )
        current_domain.process(SendQuote(quote_id=quote_id), asynchronous=False)
        if approve:
            current_domain.process(ApproveQuote(quote_id=quote_id, as_of=AS_OF), asynchronous=False)
        return quote_id

    return _quote

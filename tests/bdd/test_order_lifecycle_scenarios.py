"""BDD tests for the order lifecycle."""

from bakery.errors import ConflictError
from bakery.order.order import Order
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/order_lifecycle.feature")

DETAILS = {
    "cake": {"occasion": "Birthday", "size": "8 inch", "shape": "round", "flavor": "vanilla"},
    "wedding": {"wedding_date": "2026-09-12", "guest_count": 120, "services_needed": "cake"},
}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.parse("a {order_type} inquiry"), target_fixture="order")
def an_inquiry(order_type):
    order = Order.submit(
        order_type=order_type,
        customer_name="Ada Baker",
        customer_email="ada@example.com",
        details=DETAILS[order_type],
    )
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the quote is sent")
def quote_sent(order):
    order.quote_sent()


@when("the quote is approved")
def quote_approved(order):
    order.quote_approved("quote-1")


@when("a contract is attached")
def contract_attached(order):
    order.attach_contract("contract-1")


@when("the contract is signed")
def contract_signed(order):
    order.contract_signed_notice("contract-1")


@when(parsers.parse("a deposit of {amount:d} against {subtotal:d} is recorded"))
def deposit_recorded(order, error, amount, subtotal):
    try:
        order.record_deposit("quote-1", amount, subtotal)
    except ConflictError as exc:
        error["exc"] = exc


@when("the order is cancelled")
def order_cancelled(order, error):
    try:
        order.cancel("Changed plans")
    except ConflictError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.parse("the order is {status}"))
def order_status(order, status):
    assert order.status == status


@then(parsers.parse("the balance due is {amount:d}"))
def balance_due(order, amount):
    assert order.balance_amount == amount

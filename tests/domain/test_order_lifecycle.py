"""The order state machine table."""

import pytest
from bakery.errors import ConflictError
from bakery.order.lifecycle import (
    TERMINAL_STATES,
    TRANSITIONS,
    OrderEvent,
    OrderStatus,
    can_apply,
    next_status,
)

ALLOWED = {
    ("inquiry", "quote_sent"): "pending_payment",
    ("pending_payment", "quote_sent"): "pending_payment",
    ("pending_payment", "deposit_paid"): "deposit_paid",
    ("deposit_paid", "contract_signed"): "confirmed",
    ("deposit_paid", "confirm"): "confirmed",
    ("confirmed", "fulfilled"): "completed",
    ("inquiry", "cancel"): "cancelled",
    ("pending_payment", "cancel"): "cancelled",
    ("deposit_paid", "cancel"): "cancelled",
    ("confirmed", "cancel"): "cancelled",
}


class TestTransitionTable:
    def test_table_is_exactly_the_allowed_moves(self):
        table = {(status.value, event.value): target.value for (status, event), target in TRANSITIONS.items()}
        assert table == ALLOWED

    @pytest.mark.parametrize("status", list(OrderStatus))
    @pytest.mark.parametrize("event", list(OrderEvent))
    def test_every_pair_is_either_allowed_or_a_conflict(self, status, event):
        key = (status.value, event.value)
        if key in ALLOWED:
            assert can_apply(status.value, event)
            assert next_status(status.value, event).value == ALLOWED[key]
        else:
            assert not can_apply(status.value, event)
            with pytest.raises(ConflictError) as exc:
                next_status(status.value, event)
            assert exc.value.code == "ILLEGAL_TRANSITION"

    def test_terminal_states_have_no_exits(self):
        for status in TERMINAL_STATES:
            assert not any(can_apply(status, event) for event in OrderEvent)

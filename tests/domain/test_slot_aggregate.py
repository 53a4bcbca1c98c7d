from datetime import UTC, date, datetime, timedelta

import pytest
from bakery.errors import ConflictError
from bakery.slot.events import SlotReleased, SlotReserved
from bakery.slot.slot import HoldStatus, Slot

HELD_AT = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)


def _slot(capacity=2):
    return Slot.open("cake", date(2026, 3, 1), "10:00", capacity)


class TestOpenSlot:
    def test_identity_from_cell(self):
        slot = _slot()
        assert slot.slot_id == "cake:2026-03-01:10:00"
        assert slot.reserved == 0
        assert slot.remaining == 2


class TestReserve:
    def test_reserve_takes_one_unit(self):
        slot = _slot()
        hold = slot.reserve(order_id="ord-1", held_at=HELD_AT)

        assert slot.reserved == 1
        assert slot.remaining == 1
        assert hold.status == HoldStatus.PROVISIONAL.value
        assert isinstance(slot._events[-1], SlotReserved)

    def test_reserve_beyond_capacity_fails(self):
        slot = _slot(capacity=1)
        slot.reserve()

        with pytest.raises(ConflictError) as exc:
            slot.reserve()
        assert exc.value.code == "SLOT_FULL"
        assert slot.reserved == 1

    def test_zero_capacity_slot_is_full(self):
        with pytest.raises(ConflictError):
            _slot(capacity=0).reserve()


class TestRelease:
    def test_release_by_hold(self):
        slot = _slot()
        first = slot.reserve(held_at=HELD_AT)
        slot.reserve(held_at=HELD_AT + timedelta(minutes=1))

        released = slot.release(hold_id=first.id)

        assert released.id == first.id
        assert released.status == HoldStatus.RELEASED.value
        assert slot.reserved == 1
        assert isinstance(slot._events[-1], SlotReleased)

    def test_release_by_order(self):
        slot = _slot()
        slot.reserve(order_id="ord-1")
        assert slot.release(order_id="ord-1") is not None
        assert slot.reserved == 0

    def test_anonymous_release_returns_most_recent(self):
        slot = _slot()
        slot.reserve(held_at=HELD_AT)
        latest = slot.reserve(held_at=HELD_AT + timedelta(hours=1))

        assert slot.release().id == latest.id

    def test_anonymous_release_skips_claimed_holds(self):
        slot = _slot()
        unclaimed = slot.reserve(held_at=HELD_AT)
        slot.reserve(order_id="ord-1", held_at=HELD_AT + timedelta(hours=1))

        assert slot.release().id == unclaimed.id
        assert slot.release() is None
        assert slot.reserved == 1

    def test_release_unclaimed_refuses_an_orders_hold(self):
        slot = _slot()
        hold = slot.reserve(order_id="ord-1")

        with pytest.raises(ConflictError) as exc:
            slot.release_unclaimed(hold_id=hold.id)
        assert exc.value.code == "HOLD_CLAIMED"
        assert slot.reserved == 1

    def test_release_unclaimed_frees_a_loose_hold(self):
        slot = _slot()
        hold = slot.reserve()

        assert slot.release_unclaimed(hold_id=hold.id).id == hold.id
        assert slot.reserved == 0

    def test_release_twice_is_a_no_op(self):
        slot = _slot()
        hold = slot.reserve()
        slot.release(hold_id=hold.id)

        assert slot.release(hold_id=hold.id) is None
        assert slot.reserved == 0

    def test_release_on_empty_slot_never_goes_negative(self):
        slot = _slot()
        assert slot.release() is None
        assert slot.reserved == 0


class TestAttachAndConfirm:
    def test_attach_binds_order(self):
        slot = _slot()
        hold = slot.reserve()
        slot.attach(hold.id, "ord-9")
        assert hold.order_id == "ord-9"

    def test_attach_to_other_orders_hold_fails(self):
        slot = _slot()
        hold = slot.reserve(order_id="ord-1")
        with pytest.raises(ConflictError) as exc:
            slot.attach(hold.id, "ord-2")
        assert exc.value.code == "HOLD_TAKEN"

    def test_attach_released_hold_fails(self):
        slot = _slot()
        hold = slot.reserve()
        slot.release(hold_id=hold.id)
        with pytest.raises(ConflictError) as exc:
            slot.attach(hold.id, "ord-2")
        assert exc.value.code == "HOLD_NOT_ACTIVE"

    def test_confirm_hold(self):
        slot = _slot()
        hold = slot.reserve(order_id="ord-1")
        slot.confirm(hold.id)
        assert hold.status == HoldStatus.CONFIRMED.value
        assert hold.confirmed_at is not None
        assert slot.reserved == 1


class TestCapacity:
    def test_capacity_cannot_drop_below_reserved(self):
        slot = _slot(capacity=3)
        slot.reserve()
        slot.reserve()

        with pytest.raises(ConflictError) as exc:
            slot.set_capacity(1)
        assert exc.value.code == "CAPACITY_BELOW_RESERVED"

        slot.set_capacity(2)
        assert slot.remaining == 0

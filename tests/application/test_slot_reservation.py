"""Application tests for slot reservation, release and capacity."""

import threading
from datetime import UTC, date, datetime

import pytest
from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.order.order import Order
from bakery.settings.blackout import AddBlackoutDate
from bakery.slot.reservation import find_slot, release_slot, reserve_slot, set_slot_capacity
from bakery.slot.slot import HoldStatus
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

AS_OF = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)
SLOT_DAY = date(2026, 3, 1)


class TestReserveSlot:
    def test_capacity_of_two_admits_two_holds(self):
        first = reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        second = reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        assert first != second

        with pytest.raises(ConflictError) as exc:
            reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        assert exc.value.code == "SLOT_FULL"

        slot = find_slot("cake:2026-03-01:10:00")
        assert slot.reserved == 2
        assert slot.remaining == 0

    def test_order_types_have_separate_slots(self):
        reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)

        reserve_slot("cookies", SLOT_DAY, "10:00", as_of=AS_OF)
        assert find_slot("cookies:2026-03-01:10:00").reserved == 1

    def test_time_is_normalized(self):
        reserve_slot("cake", SLOT_DAY, "9:00", as_of=AS_OF)
        assert find_slot("cake:2026-03-01:09:00").reserved == 1

    def test_inside_lead_time_is_closed(self):
        with pytest.raises(ConflictError) as exc:
            reserve_slot("cake", date(2026, 2, 8), "10:00", as_of=AS_OF)
        assert exc.value.code == "SLOT_CLOSED"

    def test_outside_hours_is_closed(self):
        with pytest.raises(ConflictError) as exc:
            reserve_slot("cake", SLOT_DAY, "13:00", as_of=AS_OF)
        assert exc.value.code == "SLOT_CLOSED"

    def test_blackout_day_is_closed(self):
        current_domain.process(AddBlackoutDate(day=SLOT_DAY, reason="Family event"), asynchronous=False)

        with pytest.raises(ConflictError) as exc:
            reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        assert exc.value.code == "SLOT_CLOSED"
        assert find_slot("cake:2026-03-01:10:00") is None

    def test_unknown_order_type_rejected(self):
        with pytest.raises(ValidationError):
            reserve_slot("pies", SLOT_DAY, "10:00", as_of=AS_OF)


class TestReleaseSlot:
    def test_release_frees_capacity(self):
        hold_id = reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)

        release_slot("cake", SLOT_DAY, "10:00", hold_id=hold_id)

        slot = find_slot("cake:2026-03-01:10:00")
        assert slot.reserved == 1
        released = next(h for h in slot.holds if str(h.id) == hold_id)
        assert released.status == HoldStatus.RELEASED.value
        assert reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)

    def test_release_twice_is_harmless(self):
        hold_id = reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)

        assert release_slot("cake", SLOT_DAY, "10:00", hold_id=hold_id) == hold_id
        assert release_slot("cake", SLOT_DAY, "10:00", hold_id=hold_id) is None
        assert find_slot("cake:2026-03-01:10:00").reserved == 0

    def test_release_of_untouched_slot_is_a_no_op(self):
        assert release_slot("cake", SLOT_DAY, "11:00") is None

    def test_anonymous_release_leaves_order_holds_alone(self, place_inquiry):
        order_id = place_inquiry()
        loose = reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)

        assert release_slot("cake", SLOT_DAY, "10:00") == loose
        assert release_slot("cake", SLOT_DAY, "10:00") is None

        slot = find_slot("cake:2026-03-01:10:00")
        assert slot.reserved == 1
        assert str(slot.active_holds[0].order_id) == order_id

    def test_order_hold_cannot_be_released_by_id(self, place_inquiry):
        order_id = place_inquiry()
        hold_id = str(current_domain.repository_for(Order).get(order_id).slot_hold_id)

        with pytest.raises(ConflictError) as exc:
            release_slot("cake", SLOT_DAY, "10:00", hold_id=hold_id)
        assert exc.value.code == "HOLD_CLAIMED"
        assert find_slot("cake:2026-03-01:10:00").reserved == 1


class TestSlotCapacity:
    def test_raise_capacity(self):
        set_slot_capacity("cake", SLOT_DAY, "10:00", 3)
        for _ in range(3):
            reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        assert find_slot("cake:2026-03-01:10:00").remaining == 0

    def test_cannot_drop_below_reserved(self):
        reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)

        with pytest.raises(ConflictError) as exc:
            set_slot_capacity("cake", SLOT_DAY, "10:00", 1)
        assert exc.value.code == "CAPACITY_BELOW_RESERVED"

    def test_zero_capacity_closes_the_slot_to_bookings(self):
        set_slot_capacity("cake", SLOT_DAY, "10:00", 0)
        with pytest.raises(ConflictError) as exc:
            reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)
        assert exc.value.code == "SLOT_FULL"


class TestConcurrentReservations:
    def test_never_overbooks(self):
        attempts = 8
        barrier = threading.Barrier(attempts)
        outcomes = []

        def attempt():
            with bakery.domain_context():
                barrier.wait()
                try:
                    outcomes.append(reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF))
                except ConflictError as exc:
                    outcomes.append(exc.code)

        workers = [threading.Thread(target=attempt) for _ in range(attempts)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert outcomes.count("SLOT_FULL") == attempts - 2
        assert find_slot("cake:2026-03-01:10:00").reserved == 2

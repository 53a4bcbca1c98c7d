"""Slot grid and slot state — pure functions, no storage access.

A slot is a (order type, day, start time) cell. Start times are laid out
from the day's opening time in ``duration`` steps; a slot may start at the
opening time and must start strictly before closing time.

Closed states take precedence over capacity: a blacked-out, out-of-hours or
too-soon slot reports its closure even if it still has room.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum

from protean.exceptions import ValidationError

from bakery.settings.settings import parse_clock
from bakery.shared.order_type import OrderType


class SlotState(Enum):
    OPEN = "OPEN"
    FULL = "FULL"
    CLOSED_BY_LEAD_TIME = "CLOSED_BY_LEAD_TIME"
    CLOSED_BY_HOURS = "CLOSED_BY_HOURS"
    CLOSED_BY_BLACKOUT = "CLOSED_BY_BLACKOUT"


CLOSED_STATES = frozenset(
    {
        SlotState.CLOSED_BY_LEAD_TIME,
        SlotState.CLOSED_BY_HOURS,
        SlotState.CLOSED_BY_BLACKOUT,
    }
)


def slot_id_for(order_type, day: date, start_time: str) -> str:
    """Stable identity of a slot cell, e.g. ``cake:2026-03-01:10:00``."""
    type_value = order_type.value if isinstance(order_type, OrderType) else order_type
    return f"{type_value}:{day.isoformat()}:{normalize_time(start_time)}"


def normalize_time(value: str) -> str:
    """``9:00`` -> ``09:00``; rejects anything that is not a clock time."""
    return parse_clock(value, "start_time").strftime("%H:%M")


def slot_times(opens: time, closes: time, duration_minutes: int) -> list[str]:
    if duration_minutes <= 0:
        raise ValidationError({"slot_duration_minutes": ["Slot duration must be positive"]})

    anchor = date.min
    current = datetime.combine(anchor, opens)
    end = datetime.combine(anchor, closes)
    step = timedelta(minutes=duration_minutes)

    times = []
    while current < end:
        times.append(current.strftime("%H:%M"))
        current += step
    return times


def earliest_bookable_date(today: date, lead_time_days: int) -> date:
    return today + timedelta(days=lead_time_days)


def closure_for(
    day: date,
    start_time: str,
    today: date,
    lead_time_days: int,
    hours: tuple[time, time] | None,
    duration_minutes: int,
    blacked_out: bool = False,
) -> SlotState | None:
    """Which closed state applies to the slot, or None if it is bookable by date and time."""
    if blacked_out:
        return SlotState.CLOSED_BY_BLACKOUT
    if hours is None or normalize_time(start_time) not in slot_times(*hours, duration_minutes):
        return SlotState.CLOSED_BY_HOURS
    if day < earliest_bookable_date(today, lead_time_days):
        return SlotState.CLOSED_BY_LEAD_TIME
    return None


def slot_state(closure: SlotState | None, reserved: int, capacity: int) -> SlotState:
    if closure is not None:
        return closure
    return SlotState.OPEN if reserved < capacity else SlotState.FULL

"""Availability queries — read-only views over the slot grid.

Reads take no lock. A slot that fills between a read and a reservation is
still rejected by ``reserve_slot``, so callers should re-fetch availability
after a SLOT_FULL conflict.
"""

from datetime import UTC, date, datetime, timedelta

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from bakery.settings.blackout import blackout_days
from bakery.settings.settings import load_settings
from bakery.shared.order_type import parse_order_type
from bakery.slot.schedule import SlotState, closure_for, earliest_bookable_date, slot_state, slot_times
from bakery.slot.slot import Slot

MAX_RANGE_DAYS = 90
LOOKAHEAD_DAYS = 90
_SLOT_QUERY_LIMIT = 5000


def _stored_slots(order_type, start: date, end: date) -> dict[tuple[date, str], Slot]:
    slots = (
        current_domain.repository_for(Slot)
        ._dao.query.filter(order_type=order_type.value, day__gte=start, day__lte=end)
        .limit(_SLOT_QUERY_LIMIT)
        .all()
        .items
    )
    return {(slot.day, slot.start_time): slot for slot in slots}


def list_availability(order_type, start: date, end: date, as_of: datetime | None = None) -> dict[date, list[dict]]:
    """Slot states per day between ``start`` and ``end`` inclusive.

    Days the bakery is closed (no hours, or blacked out) map to an empty
    list. Every other day lists each slot with ``available``, ``remaining``,
    ``capacity`` and ``state``.
    """
    order_type = parse_order_type(order_type)
    if end < start:
        raise ValidationError({"end": ["End date must not be before start date"]})
    if (end - start).days > MAX_RANGE_DAYS:
        raise ValidationError({"end": [f"Date range cannot exceed {MAX_RANGE_DAYS} days"]})

    settings = load_settings()
    today = (as_of or datetime.now(UTC)).date()
    lead_time_days = settings.lead_time_days(order_type)
    blackouts = blackout_days(start, end)
    stored = _stored_slots(order_type, start, end)

    availability: dict[date, list[dict]] = {}
    day = start
    while day <= end:
        hours = settings.hours_for(day)
        if hours is None or day in blackouts:
            availability[day] = []
            day += timedelta(days=1)
            continue

        entries = []
        for start_time in slot_times(*hours, settings.slot_duration_minutes):
            slot = stored.get((day, start_time))
            capacity = slot.capacity if slot else settings.default_slot_capacity
            reserved = slot.reserved if slot else 0
            closure = closure_for(
                day=day,
                start_time=start_time,
                today=today,
                lead_time_days=lead_time_days,
                hours=hours,
                duration_minutes=settings.slot_duration_minutes,
            )
            state = slot_state(closure, reserved, capacity)
            entries.append(
                {
                    "time": start_time,
                    "available": state == SlotState.OPEN,
                    "remaining": max(capacity - reserved, 0),
                    "capacity": capacity,
                    "state": state.value,
                }
            )
        availability[day] = entries
        day += timedelta(days=1)

    return availability


def next_available_date(order_type, as_of: datetime | None = None) -> date | None:
    """First day on or after the lead-time horizon with at least one open slot."""
    order_type = parse_order_type(order_type)
    as_of = as_of or datetime.now(UTC)
    settings = load_settings()
    first = earliest_bookable_date(as_of.date(), settings.lead_time_days(order_type))

    availability = list_availability(order_type, first, first + timedelta(days=LOOKAHEAD_DAYS), as_of=as_of)
    for day in sorted(availability):
        if any(entry["available"] for entry in availability[day]):
            return day
    return None


def availability_summary(order_type, start: date, end: date, as_of: datetime | None = None) -> dict:
    """Flattened availability in the shape the booking front end consumes."""
    order_type = parse_order_type(order_type)
    as_of = as_of or datetime.now(UTC)
    settings = load_settings()
    lead_time_days = settings.lead_time_days(order_type)

    availability = list_availability(order_type, start, end, as_of=as_of)
    slots = [
        {
            "date": day.isoformat(),
            "time": entry["time"],
            "available": entry["available"],
            "remaining": entry["remaining"],
        }
        for day in sorted(availability)
        for entry in availability[day]
    ]
    return {
        "slots": slots,
        "leadTimeDays": lead_time_days,
        "minDate": earliest_bookable_date(as_of.date(), lead_time_days).isoformat(),
    }

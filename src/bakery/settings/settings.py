"""BusinessSettings aggregate — the owner-editable knobs the engine reads.

A single record (id ``"default"``) holds weekly pickup hours, per-order-type
lead times, slot sizing, deposit and validity defaults, and cookie pricing.
Until the owner saves anything, ``load_settings()`` hands back the defaults
below without touching storage.
"""

import json
from datetime import UTC, datetime, time

from protean import invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Integer, Text
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.shared.order_type import OrderType

SETTINGS_ID = "default"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DEFAULT_PICKUP_HOURS = {
    "sunday": {"start": "09:00", "end": "12:00"},
    "monday": {"start": "09:00", "end": "19:00"},
    "tuesday": {"start": "09:00", "end": "12:00"},
    "wednesday": {"start": "09:00", "end": "12:00"},
    "thursday": {"start": "09:00", "end": "12:00"},
    "friday": {"start": "09:00", "end": "19:00"},
    "saturday": {"start": "09:00", "end": "12:00"},
}

DEFAULT_LEAD_TIMES = {
    OrderType.COOKIES.value: 7,
    OrderType.COOKIES_LARGE.value: 14,
    OrderType.CAKE.value: 14,
    OrderType.WEDDING.value: 30,
    OrderType.TASTING.value: 14,
}


def parse_clock(value: str, field: str = "time") -> time:
    """Parse an ``HH:MM`` string."""
    try:
        hours, minutes = value.split(":")
        return time(int(hours), int(minutes))
    except (AttributeError, ValueError):
        raise ValidationError({field: [f"Invalid time of day: {value!r}"]}) from None


def _validate_hours(hours: dict) -> None:
    if not isinstance(hours, dict):
        raise ValidationError({"pickup_hours": ["Pickup hours must be a mapping of weekday to hours"]})
    for day, window in hours.items():
        if day not in WEEKDAYS:
            raise ValidationError({"pickup_hours": [f"Unknown weekday: {day}"]})
        if window is None:
            continue
        if not isinstance(window, dict):
            raise ValidationError({"pickup_hours": [f"Hours for {day} must have a start and an end"]})
        start = parse_clock(window.get("start"), "pickup_hours")
        end = parse_clock(window.get("end"), "pickup_hours")
        if end <= start:
            raise ValidationError({"pickup_hours": [f"Closing time must be after opening time on {day}"]})


def _validate_lead_times(lead_times: dict) -> None:
    if not isinstance(lead_times, dict):
        raise ValidationError({"lead_times": ["Lead times must be a mapping of order type to days"]})
    for order_type, days in lead_times.items():
        if order_type not in {t.value for t in OrderType}:
            raise ValidationError({"lead_times": [f"Unknown order type: {order_type}"]})
        if not isinstance(days, int) or days < 0:
            raise ValidationError({"lead_times": [f"Lead time for {order_type} must be a non-negative integer"]})


@bakery.aggregate
class BusinessSettings:
    pickup_hours = Text(default=json.dumps(DEFAULT_PICKUP_HOURS))
    lead_times = Text(default=json.dumps(DEFAULT_LEAD_TIMES))
    slot_duration_minutes = Integer(default=30, min_value=5, max_value=240)
    default_slot_capacity = Integer(default=2, min_value=0)
    deposit_percentage = Integer(default=50, min_value=0, max_value=100)
    quote_validity_days = Integer(default=7, min_value=1)
    contract_validity_days = Integer(default=14, min_value=1)
    provisional_hold_minutes = Integer(default=2880, min_value=1)
    cookie_price_per_dozen = Integer(default=3000, min_value=0)
    heat_seal_fee_per_dozen = Integer(default=500, min_value=0)
    updated_at = DateTime()

    @invariant.post
    def hours_and_lead_times_must_be_well_formed(self):
        _validate_hours(json.loads(self.pickup_hours or "{}"))
        _validate_lead_times(json.loads(self.lead_times or "{}"))

    @classmethod
    def default_settings(cls):
        return cls(id=SETTINGS_ID)

    def hours_for(self, day) -> tuple[time, time] | None:
        """Opening window for the weekday of ``day``, or None when closed."""
        hours = json.loads(self.pickup_hours or "{}")
        window = hours.get(WEEKDAYS[day.weekday()])
        if not window:
            return None
        return parse_clock(window["start"]), parse_clock(window["end"])

    def lead_time_days(self, order_type) -> int:
        key = order_type.value if isinstance(order_type, OrderType) else order_type
        lead_times = {**DEFAULT_LEAD_TIMES, **json.loads(self.lead_times or "{}")}
        return lead_times.get(key, 0)

    def update(self, **changes):
        from bakery.settings.events import SettingsUpdated

        applied = {}
        for field, value in changes.items():
            if value is None:
                continue
            if field == "pickup_hours":
                _validate_hours(value)
            elif field == "lead_times":
                _validate_lead_times(value)
            if field in ("pickup_hours", "lead_times"):
                merged = {**json.loads(getattr(self, field) or "{}"), **value}
                value = json.dumps(merged)
            setattr(self, field, value)
            applied[field] = value

        if not applied:
            return

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            SettingsUpdated(
                settings_id=str(self.id),
                changes=json.dumps(applied),
                updated_at=now,
            )
        )


def load_settings() -> BusinessSettings:
    """Stored settings, or the defaults if the owner never saved any."""
    try:
        return current_domain.repository_for(BusinessSettings).get(SETTINGS_ID)
    except ObjectNotFoundError:
        return BusinessSettings.default_settings()

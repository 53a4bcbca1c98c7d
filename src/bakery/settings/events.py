"""Domain events for business settings and blackout dates."""

from protean.fields import Date, DateTime, Identifier, String, Text

from bakery.domain import bakery


@bakery.event(part_of="BusinessSettings")
class SettingsUpdated:
    """The owner changed one or more business settings."""

    __version__ = 1

    settings_id = Identifier(required=True)
    changes = Text(required=True)  # JSON: {field: new value}
    updated_at = DateTime(required=True)


@bakery.event(part_of="BlackoutDate")
class BlackoutDateAdded:
    __version__ = 1

    day = Date(required=True)
    reason = String()


@bakery.event(part_of="BlackoutDate")
class BlackoutDateLifted:
    __version__ = 1

    day = Date(required=True)

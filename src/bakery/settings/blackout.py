"""Blackout dates — days with no bookable slots for any order type.

Lifting a blackout keeps the record (inactive) so the day can be blacked out
again later without losing its history.
"""

from datetime import date

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, Date, String
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.settings.events import BlackoutDateAdded, BlackoutDateLifted


@bakery.aggregate
class BlackoutDate:
    day = String(identifier=True, max_length=10)  # ISO date
    reason = String(max_length=255)
    is_active = Boolean(default=True)

    @property
    def date(self) -> date:
        return date.fromisoformat(self.day)

    def activate(self, reason=None):
        self.is_active = True
        self.reason = reason
        self.raise_(BlackoutDateAdded(day=self.date, reason=reason))

    def lift(self):
        if not self.is_active:
            return
        self.is_active = False
        self.raise_(BlackoutDateLifted(day=self.date))


def blackout_days(start: date, end: date) -> set[date]:
    """Active blackout days between ``start`` and ``end`` inclusive."""
    records = (
        current_domain.repository_for(BlackoutDate)
        ._dao.query.filter(is_active=True, day__gte=start.isoformat(), day__lte=end.isoformat())
        .limit(1000)
        .all()
        .items
    )
    return {record.date for record in records}


@bakery.command(part_of="BlackoutDate")
class AddBlackoutDate:
    day = Date(required=True)
    reason = String(max_length=255)


@bakery.command(part_of="BlackoutDate")
class LiftBlackoutDate:
    day = Date(required=True)


@bakery.command_handler(part_of=BlackoutDate)
class BlackoutDateHandler:
    @handle(AddBlackoutDate)
    def add_blackout_date(self, command):
        repo = current_domain.repository_for(BlackoutDate)
        key = command.day.isoformat()
        try:
            blackout = repo.get(key)
        except ObjectNotFoundError:
            blackout = BlackoutDate(day=key, is_active=False)
        blackout.activate(reason=command.reason)
        repo.add(blackout)
        return key

    @handle(LiftBlackoutDate)
    def lift_blackout_date(self, command):
        repo = current_domain.repository_for(BlackoutDate)
        blackout = repo.get(command.day.isoformat())
        blackout.lift()
        repo.add(blackout)

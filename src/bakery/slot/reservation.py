"""Slot reservation — commands, handler, and the locked entry points.

``reserve_slot`` is the only way capacity is taken from outside an order
flow. It holds the slot's lock for the whole command, so reading the
reserved count, checking it against capacity, incrementing it and committing
the unit of work happen as one step per slot. Different slots never wait on
each other.
"""

from datetime import UTC, date, datetime

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Date, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.settings.blackout import blackout_days
from bakery.settings.settings import BusinessSettings, load_settings
from bakery.shared.order_type import parse_order_type
from bakery.slot.schedule import closure_for, normalize_time, slot_id_for
from bakery.slot.slot import Slot, SlotHold
from bakery.utils.locks import locks, slot_key

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Slot")
class ReserveSlot:
    """Take a provisional hold on a slot, optionally on behalf of an order."""

    order_type = String(required=True, max_length=20)
    day = Date(required=True)
    start_time = String(required=True, max_length=5)
    order_id = Identifier()
    as_of = DateTime()  # Optional: defaults to now


@bakery.command(part_of="Slot")
class ReleaseSlot:
    """Return the capacity of a hold no order owns. Releasing twice is harmless."""

    order_type = String(required=True, max_length=20)
    day = Date(required=True)
    start_time = String(required=True, max_length=5)
    hold_id = Identifier()
    order_id = Identifier()
    reason = String(default="released", max_length=50)


@bakery.command(part_of="Slot")
class SetSlotCapacity:
    order_type = String(required=True, max_length=20)
    day = Date(required=True)
    start_time = String(required=True, max_length=5)
    capacity = Integer(required=True, min_value=0)


# ---------------------------------------------------------------------------
# Helpers shared with the order flow
# ---------------------------------------------------------------------------
def find_slot(slot_id: str) -> Slot | None:
    try:
        return current_domain.repository_for(Slot).get(slot_id)
    except ObjectNotFoundError:
        return None


def _slot_or_open(order_type, day: date, start_time: str, settings: BusinessSettings) -> Slot:
    slot = find_slot(slot_id_for(order_type, day, start_time))
    if slot is None:
        slot = Slot.open(order_type, day, start_time, settings.default_slot_capacity)
    return slot


def ensure_bookable(order_type, day: date, start_time: str, as_of: datetime, settings: BusinessSettings) -> None:
    """Raise ConflictError(SLOT_CLOSED) unless the slot is open by date, hours and lead time."""
    closure = closure_for(
        day=day,
        start_time=start_time,
        today=as_of.date(),
        lead_time_days=settings.lead_time_days(order_type),
        hours=settings.hours_for(day),
        duration_minutes=settings.slot_duration_minutes,
        blacked_out=day in blackout_days(day, day),
    )
    if closure is not None:
        raise ConflictError(
            {"slot": [f"Slot {slot_id_for(order_type, day, start_time)} is closed ({closure.value})"]},
            code="SLOT_CLOSED",
        )


def take_hold(order_type, day: date, start_time: str, order_id=None, as_of=None) -> tuple[Slot, SlotHold]:
    """Check and take one unit of capacity. The caller persists the slot.

    Must run under the slot's lock.
    """
    order_type = parse_order_type(order_type)
    start_time = normalize_time(start_time)
    as_of = as_of or datetime.now(UTC)
    settings = load_settings()

    ensure_bookable(order_type, day, start_time, as_of, settings)
    slot = _slot_or_open(order_type, day, start_time, settings)
    hold = slot.reserve(order_id=order_id, held_at=as_of)
    return slot, hold


# ---------------------------------------------------------------------------
# Command handler
# ---------------------------------------------------------------------------
@bakery.command_handler(part_of=Slot)
class SlotReservationHandler:
    @handle(ReserveSlot)
    def reserve(self, command):
        slot, hold = take_hold(
            command.order_type,
            command.day,
            command.start_time,
            order_id=command.order_id,
            as_of=command.as_of,
        )
        current_domain.repository_for(Slot).add(slot)

        logger.info(
            "Slot reserved",
            slot_id=slot.slot_id,
            hold_id=str(hold.id),
            order_id=command.order_id,
            remaining=slot.remaining,
        )
        return str(hold.id)

    @handle(ReleaseSlot)
    def release(self, command):
        slot = find_slot(slot_id_for(command.order_type, command.day, command.start_time))
        if slot is None:
            return None

        hold = slot.release_unclaimed(
            hold_id=command.hold_id,
            order_id=command.order_id,
            reason=command.reason or "released",
        )
        if hold is None:
            logger.debug("Nothing to release", slot_id=slot.slot_id, hold_id=command.hold_id)
            return None

        current_domain.repository_for(Slot).add(slot)
        logger.info("Slot released", slot_id=slot.slot_id, hold_id=str(hold.id), remaining=slot.remaining)
        return str(hold.id)

    @handle(SetSlotCapacity)
    def set_capacity(self, command):
        settings = load_settings()
        slot = _slot_or_open(command.order_type, command.day, command.start_time, settings)
        slot.set_capacity(command.capacity)
        current_domain.repository_for(Slot).add(slot)
        return slot.slot_id


# ---------------------------------------------------------------------------
# Locked entry points
# ---------------------------------------------------------------------------
def reserve_slot(order_type, day: date, start_time: str, order_id=None, as_of=None) -> str:
    """Reserve one unit of the slot and return the hold id.

    Raises ConflictError with code SLOT_FULL or SLOT_CLOSED.
    """
    parse_order_type(order_type)
    with locks.hold(slot_key(slot_id_for(order_type, day, start_time))):
        return current_domain.process(
            ReserveSlot(
                order_type=getattr(order_type, "value", order_type),
                day=day,
                start_time=start_time,
                order_id=order_id,
                as_of=as_of,
            ),
            asynchronous=False,
        )


def release_slot(order_type, day: date, start_time: str, hold_id=None, order_id=None, reason="released"):
    with locks.hold(slot_key(slot_id_for(order_type, day, start_time))):
        return current_domain.process(
            ReleaseSlot(
                order_type=getattr(order_type, "value", order_type),
                day=day,
                start_time=start_time,
                hold_id=hold_id,
                order_id=order_id,
                reason=reason,
            ),
            asynchronous=False,
        )


def set_slot_capacity(order_type, day: date, start_time: str, capacity: int) -> str:
    with locks.hold(slot_key(slot_id_for(order_type, day, start_time))):
        return current_domain.process(
            SetSlotCapacity(
                order_type=getattr(order_type, "value", order_type),
                day=day,
                start_time=start_time,
                capacity=capacity,
            ),
            asynchronous=False,
        )

"""Slot aggregate — finite booking capacity for one (order type, day, time) cell.

Every unit of capacity in use is a SlotHold. A hold starts Provisional,
becomes Confirmed once the order's deposit is paid, and ends Released when
the order is cancelled or the hold times out. ``reserved`` is the count of
holds that are not released and never exceeds ``capacity``.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, HasMany, Identifier, Integer, String

from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.shared.order_type import OrderType
from bakery.slot.events import (
    SlotCapacityChanged,
    SlotHoldAttached,
    SlotHoldConfirmed,
    SlotReleased,
    SlotReserved,
)
from bakery.slot.schedule import normalize_time, slot_id_for


class HoldStatus(Enum):
    PROVISIONAL = "Provisional"
    CONFIRMED = "Confirmed"
    RELEASED = "Released"


@bakery.entity(part_of="Slot")
class SlotHold:
    order_id = Identifier()  # None until the inquiry that took the hold is submitted
    status = String(choices=HoldStatus, default=HoldStatus.PROVISIONAL.value)
    held_at = DateTime(required=True)
    confirmed_at = DateTime()
    released_at = DateTime()
    release_reason = String(max_length=50)

    @property
    def is_active(self) -> bool:
        return self.status != HoldStatus.RELEASED.value


@bakery.aggregate
class Slot:
    slot_id = String(identifier=True, max_length=64)
    order_type = String(required=True, choices=OrderType)
    day = Date(required=True)
    start_time = String(required=True, max_length=5)
    capacity = Integer(required=True, min_value=0)
    reserved = Integer(default=0, min_value=0)
    holds = HasMany(SlotHold)

    @invariant.post
    def reserved_must_stay_within_capacity(self):
        if self.reserved is not None and self.capacity is not None and self.reserved > self.capacity:
            raise ValidationError({"reserved": ["Reserved count cannot exceed capacity"]})

    @classmethod
    def open(cls, order_type, day, start_time, capacity):
        type_value = order_type.value if isinstance(order_type, OrderType) else order_type
        start_time = normalize_time(start_time)
        return cls(
            slot_id=slot_id_for(type_value, day, start_time),
            order_type=type_value,
            day=day,
            start_time=start_time,
            capacity=capacity,
            reserved=0,
        )

    @property
    def remaining(self) -> int:
        return max(self.capacity - self.reserved, 0)

    @property
    def active_holds(self) -> list[SlotHold]:
        return [h for h in (self.holds or []) if h.is_active]

    def _find_hold(self, hold_id=None, order_id=None):
        active = self.active_holds
        if hold_id is not None:
            return next((h for h in active if str(h.id) == str(hold_id)), None)
        if order_id is not None:
            return next((h for h in active if h.order_id and str(h.order_id) == str(order_id)), None)
        # Anonymous release gives back the most recent hold no order has claimed
        unclaimed = [h for h in active if not h.order_id]
        return max(unclaimed, key=lambda h: h.held_at, default=None)

    # -------------------------------------------------------------------
    # Reservation
    # -------------------------------------------------------------------
    def reserve(self, order_id=None, held_at=None) -> SlotHold:
        """Take one unit of capacity. Raises ConflictError(SLOT_FULL) when none is left."""
        if self.reserved >= self.capacity:
            raise ConflictError(
                {"slot": [f"Slot {self.slot_id} is full"]},
                code="SLOT_FULL",
            )

        held_at = held_at or datetime.now(UTC)
        hold = SlotHold(
            id=str(uuid4()),
            order_id=order_id,
            held_at=held_at,
        )
        with atomic_change(self):
            self.add_holds(hold)
            self.reserved += 1

        self.raise_(
            SlotReserved(
                slot_id=self.slot_id,
                hold_id=str(hold.id),
                order_id=str(order_id) if order_id else None,
                order_type=self.order_type,
                day=self.day,
                start_time=self.start_time,
                reserved=self.reserved,
                capacity=self.capacity,
                held_at=held_at,
            )
        )
        return hold

    def attach(self, hold_id, order_id) -> SlotHold:
        """Bind a hold taken ahead of submission to the order that now owns it."""
        hold = self._find_hold(hold_id=hold_id)
        if hold is None:
            raise ConflictError(
                {"hold_id": [f"Hold {hold_id} is not active on slot {self.slot_id}"]},
                code="HOLD_NOT_ACTIVE",
            )
        if hold.order_id and str(hold.order_id) != str(order_id):
            raise ConflictError(
                {"hold_id": [f"Hold {hold_id} already belongs to another order"]},
                code="HOLD_TAKEN",
            )

        hold.order_id = order_id
        self.raise_(SlotHoldAttached(slot_id=self.slot_id, hold_id=str(hold.id), order_id=str(order_id)))
        return hold

    def confirm(self, hold_id) -> SlotHold:
        hold = self._find_hold(hold_id=hold_id)
        if hold is None:
            raise ConflictError(
                {"hold_id": [f"Hold {hold_id} is not active on slot {self.slot_id}"]},
                code="HOLD_NOT_ACTIVE",
            )
        if hold.status == HoldStatus.CONFIRMED.value:
            return hold

        now = datetime.now(UTC)
        hold.status = HoldStatus.CONFIRMED.value
        hold.confirmed_at = now
        self.raise_(
            SlotHoldConfirmed(
                slot_id=self.slot_id,
                hold_id=str(hold.id),
                order_id=str(hold.order_id) if hold.order_id else None,
                confirmed_at=now,
            )
        )
        return hold

    def release(self, hold_id=None, order_id=None, reason="released") -> SlotHold | None:
        """Give one hold's capacity back. Unknown or already released holds are a no-op."""
        hold = self._find_hold(hold_id=hold_id, order_id=order_id)
        if hold is None:
            return None

        now = datetime.now(UTC)
        with atomic_change(self):
            hold.status = HoldStatus.RELEASED.value
            hold.released_at = now
            hold.release_reason = reason
            self.reserved = max(self.reserved - 1, 0)

        self.raise_(
            SlotReleased(
                slot_id=self.slot_id,
                hold_id=str(hold.id),
                order_id=str(hold.order_id) if hold.order_id else None,
                reason=reason,
                reserved=self.reserved,
                capacity=self.capacity,
                released_at=now,
            )
        )
        return hold

    def release_unclaimed(self, hold_id=None, order_id=None, reason="released") -> SlotHold | None:
        """Release a hold no order owns. An order gives its hold back by being cancelled."""
        hold = self._find_hold(hold_id=hold_id, order_id=order_id)
        if hold is None:
            return None
        if hold.order_id:
            raise ConflictError(
                {"hold_id": [f"Hold {hold.id} belongs to order {hold.order_id}; cancel the order to free it"]},
                code="HOLD_CLAIMED",
            )
        return self.release(hold_id=hold.id, reason=reason)

    # -------------------------------------------------------------------
    # Capacity
    # -------------------------------------------------------------------
    def set_capacity(self, capacity):
        if capacity < 0:
            raise ValidationError({"capacity": ["Capacity cannot be negative"]})
        if capacity < self.reserved:
            raise ConflictError(
                {"capacity": [f"{self.reserved} holds are active; capacity cannot drop below that"]},
                code="CAPACITY_BELOW_RESERVED",
            )

        previous = self.capacity
        self.capacity = capacity
        self.raise_(
            SlotCapacityChanged(
                slot_id=self.slot_id,
                previous_capacity=previous,
                new_capacity=capacity,
                reserved=self.reserved,
            )
        )

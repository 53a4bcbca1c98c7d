"""Domain events for the Slot aggregate."""

from protean.fields import Date, DateTime, Identifier, Integer, String

from bakery.domain import bakery


@bakery.event(part_of="Slot")
class SlotReserved:
    """One unit of a slot's capacity was taken by a hold."""

    __version__ = 1

    slot_id = String(required=True)
    hold_id = Identifier(required=True)
    order_id = Identifier()
    order_type = String(required=True)
    day = Date(required=True)
    start_time = String(required=True)
    reserved = Integer(required=True)
    capacity = Integer(required=True)
    held_at = DateTime(required=True)


@bakery.event(part_of="Slot")
class SlotHoldAttached:
    """A provisional hold taken before submission was bound to its order."""

    __version__ = 1

    slot_id = String(required=True)
    hold_id = Identifier(required=True)
    order_id = Identifier(required=True)


@bakery.event(part_of="Slot")
class SlotHoldConfirmed:
    """The deposit was paid; the hold is no longer subject to timeout."""

    __version__ = 1

    slot_id = String(required=True)
    hold_id = Identifier(required=True)
    order_id = Identifier()
    confirmed_at = DateTime(required=True)


@bakery.event(part_of="Slot")
class SlotReleased:
    """A hold was released and its capacity returned to the slot."""

    __version__ = 1

    slot_id = String(required=True)
    hold_id = Identifier(required=True)
    order_id = Identifier()
    reason = String(required=True)
    reserved = Integer(required=True)
    capacity = Integer(required=True)
    released_at = DateTime(required=True)


@bakery.event(part_of="Slot")
class SlotCapacityChanged:
    __version__ = 1

    slot_id = String(required=True)
    previous_capacity = Integer(required=True)
    new_capacity = Integer(required=True)
    reserved = Integer(required=True)

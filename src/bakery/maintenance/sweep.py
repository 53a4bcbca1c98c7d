"""Periodic expiry sweep.

Triggered by an external scheduler through ``POST /maintenance/expire``.
Expires sent quotes and contracts past their ``valid_until`` date and
releases provisional slot holds older than ``provisional_hold_minutes``
whose order never got past inquiry, or whose quotes all lapsed before a
deposit was paid. Each item is its own command; one failure is logged and
the sweep moves on.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from bakery.contract.contract import Contract, ContractStatus
from bakery.contract.signing import ExpireContract
from bakery.domain import bakery
from bakery.order.lifecycle import OrderStatus
from bakery.order.order import Order
from bakery.quote.approval import ExpireQuote
from bakery.quote.quote import Quote, QuoteStatus
from bakery.settings.settings import load_settings
from bakery.slot.slot import HoldStatus, Slot
from bakery.utils.locks import locks, slot_key

logger = structlog.get_logger(__name__)

SWEEP_BATCH = 500


@bakery.command(part_of="Slot")
class ExpireSlotHold:
    """Release a provisional hold that was never paid for."""

    slot_id = String(required=True, max_length=64)
    hold_id = Identifier(required=True)
    as_of = DateTime()


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _quotes_all_lapsed(order) -> bool:
    """A quoted order whose every quote lapsed has nothing left to pay."""
    quotes = current_domain.repository_for(Quote)._dao.query.filter(order_id=str(order.id)).all().items
    return not any(q.status in (QuoteStatus.SENT.value, QuoteStatus.APPROVED.value) for q in quotes)


def _hold_is_abandoned(order) -> bool:
    if order is None:
        return True
    status = OrderStatus(order.status)
    if status == OrderStatus.INQUIRY:
        return True
    return status == OrderStatus.PENDING_PAYMENT and _quotes_all_lapsed(order)


@bakery.command_handler(part_of=Slot)
class ExpireSlotHoldHandler:
    @handle(ExpireSlotHold)
    def expire_slot_hold(self, command):
        slot_repo = current_domain.repository_for(Slot)
        order_repo = current_domain.repository_for(Order)

        slot = slot_repo.get(command.slot_id)
        hold = next((h for h in slot.active_holds if str(h.id) == str(command.hold_id)), None)
        if hold is None or hold.status != HoldStatus.PROVISIONAL.value:
            return False

        order = None
        if hold.order_id:
            try:
                order = order_repo.get(hold.order_id)
            except ObjectNotFoundError:
                order = None
        if not _hold_is_abandoned(order):
            return False

        slot.release(hold_id=hold.id, reason="timeout")
        slot_repo.add(slot)
        if order is not None and str(order.slot_hold_id) == str(hold.id):
            order.drop_slot()
            order_repo.add(order)
        return True


def _expire_each(kind, items, build_command) -> tuple[int, int]:
    expired = failed = 0
    for item in items:
        try:
            if current_domain.process(build_command(item), asynchronous=False):
                expired += 1
        except (ValidationError, InvalidOperationError, ObjectNotFoundError) as exc:
            failed += 1
            logger.warning("Failed to expire item", kind=kind, item_id=str(item.id), error=str(exc))
    return expired, failed


def _stale_holds(cutoff: datetime):
    slots = current_domain.repository_for(Slot)._dao.query.filter(reserved__gt=0).limit(SWEEP_BATCH).all().items
    for slot in slots:
        for hold in slot.active_holds:
            if hold.status == HoldStatus.PROVISIONAL.value and _aware(hold.held_at) <= cutoff:
                yield slot, hold


def run_expiry_sweep(as_of: datetime | None = None) -> dict:
    """Expire everything that lapsed by ``as_of``. Returns counts per kind."""
    as_of = _aware(as_of or datetime.now(UTC))
    counts = {"quotes_expired": 0, "contracts_expired": 0, "holds_released": 0, "failures": 0}

    quotes = (
        current_domain.repository_for(Quote)
        ._dao.query.filter(status=QuoteStatus.SENT.value)
        .limit(SWEEP_BATCH)
        .all()
        .items
    )
    expired, failed = _expire_each(
        "quote",
        [q for q in quotes if q.is_past_validity(as_of)],
        lambda quote: ExpireQuote(quote_id=str(quote.id), as_of=as_of),
    )
    counts["quotes_expired"] += expired
    counts["failures"] += failed

    contracts = (
        current_domain.repository_for(Contract)
        ._dao.query.filter(status=ContractStatus.SENT.value)
        .limit(SWEEP_BATCH)
        .all()
        .items
    )
    expired, failed = _expire_each(
        "contract",
        [c for c in contracts if c.is_past_validity(as_of)],
        lambda contract: ExpireContract(contract_id=str(contract.id), as_of=as_of),
    )
    counts["contracts_expired"] += expired
    counts["failures"] += failed

    cutoff = as_of - timedelta(minutes=load_settings().provisional_hold_minutes)
    for slot, hold in list(_stale_holds(cutoff)):
        try:
            with locks.hold(slot_key(slot.slot_id)):
                released = current_domain.process(
                    ExpireSlotHold(slot_id=slot.slot_id, hold_id=str(hold.id), as_of=as_of),
                    asynchronous=False,
                )
            if released:
                counts["holds_released"] += 1
                logger.info("Released stale slot hold", slot_id=slot.slot_id, hold_id=str(hold.id))
        except (ValidationError, InvalidOperationError, ObjectNotFoundError) as exc:
            counts["failures"] += 1
            logger.warning("Failed to release slot hold", slot_id=slot.slot_id, hold_id=str(hold.id), error=str(exc))

    logger.info("Expiry sweep complete", as_of=as_of.isoformat(), **counts)
    return counts

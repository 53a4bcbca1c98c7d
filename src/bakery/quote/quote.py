"""Quote aggregate with LineItem entities — priced proposals for an order.

Lifecycle::

    draft -> sent -> approved -> converted
                  -> expired

A sent quote may be edited and re-sent; it never goes back to draft.
Whatever the status, the totals always reconcile with the line items:

    total_price  = quantity * unit_price          (per item)
    subtotal     = sum(total_price)
    deposit      = round_half_up(subtotal * deposit_percentage / 100)
    balance      = subtotal - deposit
"""

from datetime import UTC, date, datetime, timedelta
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, HasMany, Identifier, Integer, String, Text

from bakery.domain import bakery
from bakery.errors import ConflictError, ExpiredError
from bakery.quote.events import (
    QuoteApproved,
    QuoteConverted,
    QuoteCreated,
    QuoteExpired,
    QuoteRepriced,
    QuoteSent,
)
from bakery.shared.numbers import new_token, quote_number


class QuoteStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    EXPIRED = "expired"
    CONVERTED = "converted"


_VALID_TRANSITIONS = {
    QuoteStatus.DRAFT: {QuoteStatus.SENT},
    QuoteStatus.SENT: {QuoteStatus.SENT, QuoteStatus.APPROVED, QuoteStatus.EXPIRED},
    QuoteStatus.APPROVED: {QuoteStatus.CONVERTED},
    QuoteStatus.EXPIRED: set(),
    QuoteStatus.CONVERTED: set(),
}

_EDITABLE_STATES = {QuoteStatus.DRAFT, QuoteStatus.SENT}


def deposit_for(subtotal: int, percentage: int) -> int:
    """Deposit in cents, rounding half a cent up."""
    return (subtotal * percentage + 50) // 100


@bakery.entity(part_of="Quote")
class LineItem:
    description = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=0)
    unit_price = Integer(required=True, min_value=0)
    total_price = Integer(required=True, min_value=0)
    sort_order = Integer(default=0)


@bakery.aggregate
class Quote:
    order_id = Identifier(required=True)
    quote_number = String(required=True, max_length=20)
    status = String(choices=QuoteStatus, default=QuoteStatus.DRAFT.value)
    line_items = HasMany(LineItem)
    deposit_percentage = Integer(default=50, min_value=0, max_value=100)
    subtotal = Integer(default=0, min_value=0)
    deposit_amount = Integer(default=0, min_value=0)
    balance_amount = Integer(default=0, min_value=0)
    valid_until = Date(required=True)
    approval_token = String(max_length=64)
    notes = Text()
    customer_message = Text()
    created_at = DateTime()
    updated_at = DateTime()
    sent_at = DateTime()
    approved_at = DateTime()
    expired_at = DateTime()
    converted_at = DateTime()

    @invariant.post
    def totals_must_reconcile_with_line_items(self):
        for item in self.line_items or []:
            if item.total_price != item.quantity * item.unit_price:
                raise ValidationError({"line_items": [f"Total for {item.description!r} does not match quantity x price"]})

        subtotal = sum(item.total_price for item in self.line_items or [])
        if self.subtotal != subtotal:
            raise ValidationError({"subtotal": ["Subtotal does not match line items"]})
        if self.deposit_amount != deposit_for(subtotal, self.deposit_percentage):
            raise ValidationError({"deposit_amount": ["Deposit does not match deposit percentage"]})
        if self.balance_amount != subtotal - self.deposit_amount:
            raise ValidationError({"balance_amount": ["Balance does not match subtotal minus deposit"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, order_id, deposit_percentage, valid_days, today: date | None = None):
        if valid_days is None or valid_days < 1:
            raise ValidationError({"valid_days": ["A quote must be valid for at least one day"]})

        now = datetime.now(UTC)
        today = today or now.date()
        quote = cls(
            order_id=str(order_id),
            quote_number=quote_number(now),
            deposit_percentage=deposit_percentage,
            valid_until=today + timedelta(days=valid_days),
            approval_token=new_token(),
            created_at=now,
            updated_at=now,
        )
        quote.raise_(
            QuoteCreated(
                quote_id=str(quote.id),
                order_id=str(order_id),
                quote_number=quote.quote_number,
                deposit_percentage=deposit_percentage,
                valid_until=quote.valid_until,
                created_at=now,
            )
        )
        return quote

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: QuoteStatus):
        current = QuoteStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ConflictError(
                {"status": [f"Cannot move quote from {current.value} to {target.value}"]},
                code="INVALID_QUOTE_STATE",
            )

    def _assert_editable(self):
        if QuoteStatus(self.status) not in _EDITABLE_STATES:
            raise ConflictError(
                {"status": [f"Quote is {self.status} and can no longer be edited"]},
                code="INVALID_QUOTE_STATE",
            )

    def _recalculate(self):
        subtotal = sum(item.total_price for item in self.line_items or [])
        deposit = deposit_for(subtotal, self.deposit_percentage)
        self.subtotal = subtotal
        self.deposit_amount = deposit
        self.balance_amount = subtotal - deposit

    def _raise_repriced(self, now):
        self.raise_(
            QuoteRepriced(
                quote_id=str(self.id),
                line_item_count=len(self.line_items or []),
                subtotal=self.subtotal,
                deposit_percentage=self.deposit_percentage,
                deposit_amount=self.deposit_amount,
                balance_amount=self.balance_amount,
                repriced_at=now,
            )
        )

    def is_past_validity(self, as_of: datetime) -> bool:
        return as_of.date() > self.valid_until

    @property
    def sorted_line_items(self) -> list[LineItem]:
        return sorted(self.line_items or [], key=lambda item: item.sort_order)

    # -------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------
    def set_line_items(self, items: list[dict]):
        """Replace every line item at once. Nothing changes if any item is invalid."""
        self._assert_editable()

        errors = []
        for position, item in enumerate(items):
            description = (item.get("description") or "").strip()
            quantity = item.get("quantity")
            unit_price = item.get("unit_price")
            if not description:
                errors.append(f"Item {position + 1}: description is required")
            if not isinstance(quantity, int) or quantity < 0:
                errors.append(f"Item {position + 1}: quantity must be a non-negative integer")
            if not isinstance(unit_price, int) or unit_price < 0:
                errors.append(f"Item {position + 1}: unit price must be a non-negative integer")
        if errors:
            raise ValidationError({"line_items": errors})

        replacements = [
            LineItem(
                description=item["description"].strip(),
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                total_price=item["quantity"] * item["unit_price"],
                sort_order=item.get("sort_order", position),
            )
            for position, item in enumerate(items)
        ]

        now = datetime.now(UTC)
        with atomic_change(self):
            for existing in list(self.line_items or []):
                self.remove_line_items(existing)
            for replacement in replacements:
                self.add_line_items(replacement)
            self._recalculate()
            self.updated_at = now

        self._raise_repriced(now)

    def update_terms(self, deposit_percentage=None, valid_until=None, notes=None, customer_message=None):
        self._assert_editable()
        if deposit_percentage is not None and not 0 <= deposit_percentage <= 100:
            raise ValidationError({"deposit_percentage": ["Deposit percentage must be between 0 and 100"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            if deposit_percentage is not None:
                self.deposit_percentage = deposit_percentage
            if valid_until is not None:
                self.valid_until = valid_until
            if notes is not None:
                self.notes = notes
            if customer_message is not None:
                self.customer_message = customer_message
            self._recalculate()
            self.updated_at = now

        self._raise_repriced(now)

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def send(self):
        self._assert_can_transition(QuoteStatus.SENT)
        if not self.line_items:
            raise ValidationError({"line_items": ["Add at least one line item before sending"]})

        now = datetime.now(UTC)
        self.status = QuoteStatus.SENT.value
        self.sent_at = now
        self.updated_at = now
        self.raise_(
            QuoteSent(
                quote_id=str(self.id),
                order_id=str(self.order_id),
                quote_number=self.quote_number,
                subtotal=self.subtotal,
                deposit_amount=self.deposit_amount,
                valid_until=self.valid_until,
                sent_at=now,
            )
        )

    def approve(self, as_of: datetime, approval_token=None):
        """Customer accepts the quote. Past ``valid_until`` this fails and leaves the status alone."""
        if QuoteStatus(self.status) == QuoteStatus.EXPIRED or (
            QuoteStatus(self.status) == QuoteStatus.SENT and self.is_past_validity(as_of)
        ):
            raise ExpiredError(
                {"valid_until": [f"Quote {self.quote_number} expired on {self.valid_until.isoformat()}"]},
                code="QUOTE_EXPIRED",
            )
        self._assert_can_transition(QuoteStatus.APPROVED)
        if approval_token is not None and approval_token != self.approval_token:
            raise ValidationError({"approval_token": ["Approval link is not valid for this quote"]})
        if not self.line_items:
            raise ValidationError({"line_items": ["Quote has no line items"]})

        now = datetime.now(UTC)
        self.status = QuoteStatus.APPROVED.value
        self.approved_at = now
        self.updated_at = now
        self.raise_(QuoteApproved(quote_id=str(self.id), order_id=str(self.order_id), approved_at=now))

    def mark_expired(self, as_of: datetime) -> bool:
        """Expire a sent quote whose validity has lapsed. Returns False when there is nothing to do."""
        if QuoteStatus(self.status) != QuoteStatus.SENT or not self.is_past_validity(as_of):
            return False

        now = datetime.now(UTC)
        self.status = QuoteStatus.EXPIRED.value
        self.expired_at = now
        self.updated_at = now
        self.raise_(
            QuoteExpired(
                quote_id=str(self.id),
                order_id=str(self.order_id),
                valid_until=self.valid_until,
                expired_at=now,
            )
        )
        return True

    def convert(self):
        self._assert_can_transition(QuoteStatus.CONVERTED)

        now = datetime.now(UTC)
        self.status = QuoteStatus.CONVERTED.value
        self.converted_at = now
        self.updated_at = now
        self.raise_(
            QuoteConverted(
                quote_id=str(self.id),
                order_id=str(self.order_id),
                deposit_amount=self.deposit_amount,
                converted_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Outbound data
    # -------------------------------------------------------------------
    def snapshot(self) -> dict:
        """Structured totals handed to the notification renderer."""
        return {
            "quote_id": str(self.id),
            "quote_number": self.quote_number,
            "status": self.status,
            "line_items": [
                {
                    "description": item.description,
                    "quantity": item.quantity,
                    "unit_price": item.unit_price,
                    "total_price": item.total_price,
                }
                for item in self.sorted_line_items
            ],
            "subtotal": self.subtotal,
            "deposit_percentage": self.deposit_percentage,
            "deposit_amount": self.deposit_amount,
            "balance_amount": self.balance_amount,
            "valid_until": self.valid_until.isoformat(),
            "approval_token": self.approval_token,
            "customer_message": self.customer_message,
        }

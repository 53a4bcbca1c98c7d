"""Contract aggregate — the written agreement behind a wedding order.

    draft -> sent -> signed
                  -> expired

A contract can be edited while draft or sent. Signing needs the customer's
name and explicit agreement, and must happen on or before ``valid_until``.
"""

from datetime import UTC, date, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Identifier, Integer, String, Text

from bakery.contract.events import (
    ContractCreated,
    ContractExpired,
    ContractSent,
    ContractSigned,
    ContractUpdated,
)
from bakery.domain import bakery
from bakery.errors import ConflictError, ExpiredError
from bakery.shared.numbers import contract_number, new_token


class ContractStatus(Enum):
    DRAFT = "draft"
    SENT = "sent"
    SIGNED = "signed"
    EXPIRED = "expired"


_VALID_TRANSITIONS = {
    ContractStatus.DRAFT: {ContractStatus.SENT},
    ContractStatus.SENT: {ContractStatus.SENT, ContractStatus.SIGNED, ContractStatus.EXPIRED},
    ContractStatus.SIGNED: set(),
    ContractStatus.EXPIRED: set(),
}

_EDITABLE_STATES = {ContractStatus.DRAFT, ContractStatus.SENT}

EDITABLE_FIELDS = ("contract_body", "event_date", "venue_name", "venue_address", "guest_count", "notes", "valid_until")


@bakery.aggregate
class Contract:
    order_id = Identifier(required=True)
    contract_number = String(required=True, max_length=20)
    status = String(choices=ContractStatus, default=ContractStatus.DRAFT.value)
    contract_body = Text()
    event_date = Date()
    venue_name = String(max_length=255)
    venue_address = String(max_length=500)
    guest_count = Integer(min_value=1)
    notes = Text()
    valid_until = Date(required=True)
    signing_token = String(max_length=64)
    signer_name = String(max_length=150)
    created_at = DateTime()
    updated_at = DateTime()
    sent_at = DateTime()
    signed_at = DateTime()
    expired_at = DateTime()

    @classmethod
    def create(cls, order_id, valid_days, today: date | None = None, **terms):
        if valid_days is None or valid_days < 1:
            raise ValidationError({"valid_days": ["A contract must be valid for at least one day"]})

        now = datetime.now(UTC)
        today = today or now.date()
        contract = cls(
            order_id=str(order_id),
            contract_number=contract_number(now),
            valid_until=today + timedelta(days=valid_days),
            signing_token=new_token(),
            created_at=now,
            updated_at=now,
            **{name: value for name, value in terms.items() if value is not None},
        )
        contract.raise_(
            ContractCreated(
                contract_id=str(contract.id),
                order_id=str(order_id),
                contract_number=contract.contract_number,
                valid_until=contract.valid_until,
                created_at=now,
            )
        )
        return contract

    @property
    def is_active(self) -> bool:
        return ContractStatus(self.status) != ContractStatus.EXPIRED

    def is_past_validity(self, as_of: datetime) -> bool:
        return as_of.date() > self.valid_until

    def _assert_can_transition(self, target: ContractStatus):
        current = ContractStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise ConflictError(
                {"status": [f"Cannot move contract from {current.value} to {target.value}"]},
                code="INVALID_CONTRACT_STATE",
            )

    def update(self, **changes):
        if ContractStatus(self.status) not in _EDITABLE_STATES:
            raise ConflictError(
                {"status": [f"Contract is {self.status} and can no longer be edited"]},
                code="INVALID_CONTRACT_STATE",
            )
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({"contract": [f"Fields cannot be edited: {', '.join(sorted(unknown))}"]})

        now = datetime.now(UTC)
        for name, value in changes.items():
            if value is not None:
                setattr(self, name, value)
        self.updated_at = now
        self.raise_(ContractUpdated(contract_id=str(self.id), updated_at=now))

    def send(self):
        self._assert_can_transition(ContractStatus.SENT)
        if not (self.contract_body or "").strip():
            raise ValidationError({"contract_body": ["Contract body is required before sending"]})

        now = datetime.now(UTC)
        self.status = ContractStatus.SENT.value
        self.sent_at = now
        self.updated_at = now
        self.raise_(
            ContractSent(
                contract_id=str(self.id),
                order_id=str(self.order_id),
                valid_until=self.valid_until,
                sent_at=now,
            )
        )

    def sign(self, signer_name, agreed, as_of: datetime, signing_token=None):
        if ContractStatus(self.status) == ContractStatus.EXPIRED or (
            ContractStatus(self.status) == ContractStatus.SENT and self.is_past_validity(as_of)
        ):
            raise ExpiredError(
                {"valid_until": [f"Contract {self.contract_number} expired on {self.valid_until.isoformat()}"]},
                code="CONTRACT_EXPIRED",
            )
        self._assert_can_transition(ContractStatus.SIGNED)

        errors = {}
        if not (signer_name or "").strip():
            errors["signer_name"] = ["Signer name is required"]
        if agreed is not True:
            errors["agreed"] = ["The terms must be agreed to"]
        if signing_token is not None and signing_token != self.signing_token:
            errors["signing_token"] = ["Signing link is not valid for this contract"]
        if errors:
            raise ValidationError(errors)

        now = datetime.now(UTC)
        self.status = ContractStatus.SIGNED.value
        self.signer_name = signer_name.strip()
        self.signed_at = now
        self.updated_at = now
        self.raise_(
            ContractSigned(
                contract_id=str(self.id),
                order_id=str(self.order_id),
                signer_name=self.signer_name,
                signed_at=now,
            )
        )

    def mark_expired(self, as_of: datetime) -> bool:
        if ContractStatus(self.status) != ContractStatus.SENT or not self.is_past_validity(as_of):
            return False

        now = datetime.now(UTC)
        self.status = ContractStatus.EXPIRED.value
        self.expired_at = now
        self.updated_at = now
        self.raise_(
            ContractExpired(
                contract_id=str(self.id),
                order_id=str(self.order_id),
                valid_until=self.valid_until,
                expired_at=now,
            )
        )
        return True

    def snapshot(self) -> dict:
        return {
            "contract_id": str(self.id),
            "contract_number": self.contract_number,
            "status": self.status,
            "contract_body": self.contract_body,
            "event_date": self.event_date.isoformat() if self.event_date else None,
            "venue_name": self.venue_name,
            "venue_address": self.venue_address,
            "guest_count": self.guest_count,
            "valid_until": self.valid_until.isoformat(),
            "signing_token": self.signing_token,
        }

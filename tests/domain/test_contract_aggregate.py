from datetime import UTC, date, datetime, timedelta

import pytest
from bakery.contract.contract import Contract, ContractStatus
from bakery.contract.events import ContractSigned
from bakery.errors import ConflictError, ExpiredError
from protean.exceptions import ValidationError

TODAY = date(2026, 2, 1)


def _contract(**terms):
    return Contract.create(order_id="ord-1", valid_days=14, today=TODAY, **terms)


def _sent_contract():
    contract = _contract(contract_body="The bakery will provide a four-tier cake.")
    contract.send()
    return contract


def _on(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, 10, 0, tzinfo=UTC)


class TestDraft:
    def test_created_as_draft(self):
        contract = _contract(venue_name="Rose Hall", guest_count=120)
        assert contract.status == ContractStatus.DRAFT.value
        assert contract.contract_number.startswith("C-")
        assert contract.valid_until == date(2026, 2, 15)
        assert contract.guest_count == 120

    def test_update_terms(self):
        contract = _contract()
        contract.update(contract_body="Terms", venue_address="1 Garden Way")
        assert contract.contract_body == "Terms"
        assert contract.venue_address == "1 Garden Way"

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            _contract().update(signer_name="Someone")


class TestSend:
    def test_body_required(self):
        with pytest.raises(ValidationError) as exc:
            _contract().send()
        assert "contract_body" in exc.value.messages

    def test_sent(self):
        assert _sent_contract().status == ContractStatus.SENT.value


class TestSign:
    def test_sign_records_signer(self):
        contract = _sent_contract()
        contract.sign(signer_name=" Ada Baker ", agreed=True, as_of=_on(TODAY))

        assert contract.status == ContractStatus.SIGNED.value
        assert contract.signer_name == "Ada Baker"
        assert isinstance(contract._events[-1], ContractSigned)

    def test_needs_name_and_agreement(self):
        contract = _sent_contract()
        with pytest.raises(ValidationError) as exc:
            contract.sign(signer_name="", agreed=False, as_of=_on(TODAY))
        assert set(exc.value.messages) == {"signer_name", "agreed"}
        assert contract.status == ContractStatus.SENT.value

    def test_draft_cannot_be_signed(self):
        with pytest.raises(ConflictError):
            _contract().sign(signer_name="Ada", agreed=True, as_of=_on(TODAY))

    def test_sign_after_validity_fails(self):
        contract = _sent_contract()
        with pytest.raises(ExpiredError) as exc:
            contract.sign(signer_name="Ada", agreed=True, as_of=_on(contract.valid_until + timedelta(days=1)))
        assert exc.value.code == "CONTRACT_EXPIRED"
        assert contract.status == ContractStatus.SENT.value

    def test_signed_contract_is_locked(self):
        contract = _sent_contract()
        contract.sign(signer_name="Ada", agreed=True, as_of=_on(TODAY))
        with pytest.raises(ConflictError):
            contract.update(notes="late change")


class TestExpire:
    def test_mark_expired(self):
        contract = _sent_contract()
        assert contract.mark_expired(_on(contract.valid_until + timedelta(days=1))) is True
        assert contract.is_active is False
        assert contract.mark_expired(_on(contract.valid_until + timedelta(days=2))) is False

"""Domain events for the Contract aggregate."""

from protean.fields import Date, DateTime, Identifier, String

from bakery.domain import bakery


@bakery.event(part_of="Contract")
class ContractCreated:
    __version__ = 1

    contract_id = Identifier(required=True)
    order_id = Identifier(required=True)
    contract_number = String(required=True)
    valid_until = Date(required=True)
    created_at = DateTime(required=True)


@bakery.event(part_of="Contract")
class ContractUpdated:
    __version__ = 1

    contract_id = Identifier(required=True)
    updated_at = DateTime(required=True)


@bakery.event(part_of="Contract")
class ContractSent:
    __version__ = 1

    contract_id = Identifier(required=True)
    order_id = Identifier(required=True)
    valid_until = Date(required=True)
    sent_at = DateTime(required=True)


@bakery.event(part_of="Contract")
class ContractSigned:
    """The customer agreed to the contract terms."""

    __version__ = 1

    contract_id = Identifier(required=True)
    order_id = Identifier(required=True)
    signer_name = String(required=True)
    signed_at = DateTime(required=True)


@bakery.event(part_of="Contract")
class ContractExpired:
    __version__ = 1

    contract_id = Identifier(required=True)
    order_id = Identifier(required=True)
    valid_until = Date(required=True)
    expired_at = DateTime(required=True)

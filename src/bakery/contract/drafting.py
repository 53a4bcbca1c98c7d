"""Contract drafting and sending — commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Date, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from bakery.contract.contract import Contract
from bakery.domain import bakery
from bakery.errors import ConflictError
from bakery.notifications import notify
from bakery.notifications.port import NotificationTemplate
from bakery.order.order import Order
from bakery.settings.settings import load_settings

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Contract")
class CreateContract:
    """Draft a contract for a wedding order."""

    order_id = Identifier(required=True)
    contract_body = Text()
    event_date = Date()
    venue_name = String(max_length=255)
    venue_address = String(max_length=500)
    guest_count = Integer(min_value=1)
    notes = Text()
    valid_days = Integer(min_value=1)


@bakery.command(part_of="Contract")
class UpdateContract:
    contract_id = Identifier(required=True)
    contract_body = Text()
    event_date = Date()
    venue_name = String(max_length=255)
    venue_address = String(max_length=500)
    guest_count = Integer(min_value=1)
    notes = Text()
    valid_until = Date()


@bakery.command(part_of="Contract")
class SendContract:
    contract_id = Identifier(required=True)


def active_contract_for(order_id):
    """The order's contract that has not expired, if any."""
    repo = current_domain.repository_for(Contract)
    candidates = repo._dao.query.filter(order_id=str(order_id)).all().items
    return next((contract for contract in candidates if contract.is_active), None)


@bakery.command_handler(part_of=Contract)
class ContractDraftingHandler:
    @handle(CreateContract)
    def create_contract(self, command):
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)
        if not order.is_wedding:
            raise ValidationError({"order_id": ["Contracts are only issued for wedding orders"]})
        if active_contract_for(order.id) is not None:
            raise ConflictError(
                {"order_id": [f"Order {order.order_number} already has an active contract"]},
                code="CONTRACT_EXISTS",
            )

        details = order.order_details
        contract = Contract.create(
            order_id=order.id,
            valid_days=command.valid_days or load_settings().contract_validity_days,
            contract_body=command.contract_body,
            event_date=command.event_date or details.wedding_date,
            venue_name=command.venue_name or details.venue_name,
            venue_address=command.venue_address or details.venue_address,
            guest_count=command.guest_count or details.guest_count,
            notes=command.notes,
        )
        order.attach_contract(contract.id)

        current_domain.repository_for(Contract).add(contract)
        order_repo.add(order)
        logger.info("Contract drafted", contract_id=str(contract.id), order_id=str(order.id))
        return str(contract.id)

    @handle(UpdateContract)
    def update_contract(self, command):
        repo = current_domain.repository_for(Contract)
        contract = repo.get(command.contract_id)
        contract.update(
            contract_body=command.contract_body,
            event_date=command.event_date,
            venue_name=command.venue_name,
            venue_address=command.venue_address,
            guest_count=command.guest_count,
            notes=command.notes,
            valid_until=command.valid_until,
        )
        repo.add(contract)

    @handle(SendContract)
    def send_contract(self, command):
        repo = current_domain.repository_for(Contract)
        contract = repo.get(command.contract_id)
        order = current_domain.repository_for(Order).get(contract.order_id)

        contract.send()
        repo.add(contract)

        notify(
            NotificationTemplate.CONTRACT_SENT,
            order.customer.email,
            {
                **contract.snapshot(),
                "order_number": order.order_number,
                "customer_name": order.customer.name,
            },
        )
        logger.info("Contract sent", contract_id=str(contract.id), order_id=str(order.id))

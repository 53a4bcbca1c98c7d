"""Contract signing and expiry."""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Boolean, DateTime, Identifier, String
from protean.utils.globals import current_domain

from bakery.contract.contract import Contract
from bakery.domain import bakery
from bakery.order.lifecycle import OrderStatus
from bakery.order.notices import announce_confirmation
from bakery.order.order import Order

logger = structlog.get_logger(__name__)


@bakery.command(part_of="Contract")
class SignContract:
    contract_id = Identifier(required=True)
    signer_name = String(max_length=150)
    agreed = Boolean(default=False)
    signing_token = String(max_length=64)
    as_of = DateTime()


@bakery.command(part_of="Contract")
class ExpireContract:
    contract_id = Identifier(required=True)
    as_of = DateTime()


@bakery.command_handler(part_of=Contract)
class ContractSigningHandler:
    @handle(SignContract)
    def sign_contract(self, command):
        contract_repo = current_domain.repository_for(Contract)
        order_repo = current_domain.repository_for(Order)

        contract = contract_repo.get(command.contract_id)
        order = order_repo.get(contract.order_id)
        previous_status = order.status

        contract.sign(
            signer_name=command.signer_name,
            agreed=command.agreed,
            as_of=command.as_of or datetime.now(UTC),
            signing_token=command.signing_token,
        )
        order.contract_signed_notice(contract.id)

        contract_repo.add(contract)
        order_repo.add(order)
        logger.info(
            "Contract signed",
            contract_id=str(contract.id),
            order_id=str(order.id),
            order_status=order.status,
        )
        if order.status != previous_status and OrderStatus(order.status) == OrderStatus.CONFIRMED:
            announce_confirmation(order)

    @handle(ExpireContract)
    def expire_contract(self, command):
        repo = current_domain.repository_for(Contract)
        contract = repo.get(command.contract_id)
        expired = contract.mark_expired(command.as_of or datetime.now(UTC))
        if expired:
            repo.add(contract)
            logger.info("Contract expired", contract_id=str(contract.id))
        return expired

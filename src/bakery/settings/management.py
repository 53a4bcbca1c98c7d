"""Business settings — command and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Integer, Text
from protean.utils.globals import current_domain

from bakery.domain import bakery
from bakery.settings.settings import BusinessSettings, load_settings


@bakery.command(part_of="BusinessSettings")
class UpdateSettings:
    """Change any subset of the business settings; omitted fields keep their value."""

    pickup_hours = Text()  # JSON: {"monday": {"start": "09:00", "end": "19:00"}, "sunday": null}
    lead_times = Text()  # JSON: {"cake": 14}
    slot_duration_minutes = Integer()
    default_slot_capacity = Integer()
    deposit_percentage = Integer()
    quote_validity_days = Integer()
    contract_validity_days = Integer()
    provisional_hold_minutes = Integer()
    cookie_price_per_dozen = Integer()
    heat_seal_fee_per_dozen = Integer()


def _decode(command, field):
    raw = getattr(command, field)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError({field: ["Must be valid JSON"]}) from None


@bakery.command_handler(part_of=BusinessSettings)
class UpdateSettingsHandler:
    @handle(UpdateSettings)
    def update_settings(self, command):
        settings = load_settings()
        settings.update(
            pickup_hours=_decode(command, "pickup_hours"),
            lead_times=_decode(command, "lead_times"),
            slot_duration_minutes=command.slot_duration_minutes,
            default_slot_capacity=command.default_slot_capacity,
            deposit_percentage=command.deposit_percentage,
            quote_validity_days=command.quote_validity_days,
            contract_validity_days=command.contract_validity_days,
            provisional_hold_minutes=command.provisional_hold_minutes,
            cookie_price_per_dozen=command.cookie_price_per_dozen,
            heat_seal_fee_per_dozen=command.heat_seal_fee_per_dozen,
        )
        current_domain.repository_for(BusinessSettings).add(settings)
        return str(settings.id)

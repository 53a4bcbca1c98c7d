"""Order details — one value object per order type.

``build_details`` picks the shape from the order type and validates the
payload against it, so an order never carries fields that belong to a
different kind of order. The Order stores the result as JSON together with
its ``order_type`` discriminant.
"""

import json
from datetime import date
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Date, Integer, String, Text
from protean.utils.reflection import declared_fields

from bakery.domain import bakery
from bakery.shared.order_type import OrderType, parse_order_type


@bakery.value_object
class CookieOrderDetails:
    """A boxed cookie order built from a checked-out cart."""

    dozens = Integer(required=True, min_value=1, max_value=3)
    flavors = Text(required=True)  # JSON list of {flavor, label, quantity}
    packaging = String(required=True, max_length=20)
    pickup_person_name = String(max_length=150)
    backup_date = Date()
    backup_time = String(max_length=5)


@bakery.value_object
class LargeCookieOrderDetails:
    quantity = Integer(required=True, min_value=4)  # dozens; smaller boxes use the cart
    flavor_mix = String(required=True, max_length=500)
    individual_wrap = Boolean(default=False)
    event_type = String(max_length=100)
    event_date = Date()
    setup_needs = String(max_length=500)


@bakery.value_object
class CakeOrderDetails:
    occasion = String(required=True, max_length=100)
    size = String(required=True, max_length=50)
    shape = String(required=True, max_length=50)
    flavor = String(required=True, max_length=100)
    servings = Integer(min_value=1)
    filling = String(max_length=100)
    buttercream = String(max_length=100)
    design_style = String(max_length=255)
    color_palette = String(max_length=255)
    dietary_notes = String(max_length=500)
    budget_range = String(max_length=50)
    event_date = Date()


@bakery.value_object
class WeddingOrderDetails:
    wedding_date = Date(required=True)
    guest_count = Integer(required=True, min_value=1)
    services_needed = String(required=True, max_length=255)
    partner_name = String(max_length=150)
    venue_name = String(max_length=255)
    venue_address = String(max_length=500)
    ceremony_time = String(max_length=5)
    reception_time = String(max_length=5)
    cake_tiers = String(max_length=50)
    dessert_preferences = String(max_length=500)
    budget_range = String(max_length=50)
    setup_needed = Boolean(default=False)


class TastingType(Enum):
    CAKE = "cake"
    COOKIE = "cookie"
    BOTH = "both"


@bakery.value_object
class TastingOrderDetails:
    tasting_type = String(required=True, choices=TastingType)
    wedding_date = Date()
    cake_flavors = String(max_length=500)
    fillings = String(max_length=500)
    cookie_flavors = String(max_length=500)


ORDER_DETAIL_TYPES = {
    OrderType.COOKIES: CookieOrderDetails,
    OrderType.COOKIES_LARGE: LargeCookieOrderDetails,
    OrderType.CAKE: CakeOrderDetails,
    OrderType.WEDDING: WeddingOrderDetails,
    OrderType.TASTING: TastingOrderDetails,
}


def _coerce_dates(details_cls, payload: dict) -> dict:
    coerced = dict(payload)
    for name, field in declared_fields(details_cls).items():
        value = coerced.get(name)
        if getattr(field, "content_type", None) is date and isinstance(value, str) and value:
            try:
                coerced[name] = date.fromisoformat(value)
            except ValueError:
                raise ValidationError({name: [f"Invalid date: {value!r}"]}) from None
    return coerced


def build_details(order_type, payload: dict | None):
    """Validate ``payload`` against the details shape of ``order_type``."""
    details_cls = ORDER_DETAIL_TYPES[parse_order_type(order_type)]
    payload = payload or {}

    unknown = set(payload) - set(declared_fields(details_cls))
    if unknown:
        raise ValidationError({"details": [f"Unexpected fields for {details_cls.__name__}: {', '.join(sorted(unknown))}"]})

    return details_cls(**_coerce_dates(details_cls, payload))


def dump_details(details) -> str:
    return json.dumps(details.to_dict(), default=str)


def load_details(order_type, raw: str | None):
    return build_details(order_type, json.loads(raw) if raw else {})

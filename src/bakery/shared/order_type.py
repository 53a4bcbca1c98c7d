"""Order types offered by the bakery."""

from enum import Enum

from protean.exceptions import ValidationError


class OrderType(Enum):
    COOKIES = "cookies"
    COOKIES_LARGE = "cookies_large"
    CAKE = "cake"
    WEDDING = "wedding"
    TASTING = "tasting"


def parse_order_type(value) -> OrderType:
    try:
        return OrderType(value)
    except ValueError:
        raise ValidationError({"order_type": [f"Unknown order type: {value}"]}) from None

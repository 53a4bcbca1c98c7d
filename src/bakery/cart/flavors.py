"""Cookie flavor catalogue and per-piece capacity cost.

Each flavor costs one unit of the dozens target per cookie, except the
double-weighted flavor, whose cookies cost two units each. A half-dozen
increment is always six units of cost, so it yields six ordinary cookies
or three double-weighted ones.
"""

from enum import Enum

COOKIES_PER_DOZEN = 12
HALF_DOZEN = 6
MAX_DOZENS = 3

FLAVOR_LABELS = {
    "chocolate_chip": "Chocolate Chip",
    "vanilla_bean_sugar": "Vanilla Bean Sugar",
    "cherry_almond": "Cherry Almond",
    "espresso_butterscotch": "Espresso Butterscotch",
    "lemon_sugar": "Lemon Sugar",
}

DOUBLE_WEIGHTED = frozenset({"espresso_butterscotch"})


class Packaging(Enum):
    STANDARD = "standard"
    HEAT_SEALED = "heat_sealed"


def is_known(flavor: str) -> bool:
    return flavor in FLAVOR_LABELS


def unit_cost(flavor: str) -> int:
    return 2 if flavor in DOUBLE_WEIGHTED else 1


def pieces_per_increment(flavor: str) -> int:
    return HALF_DOZEN // unit_cost(flavor)


def cost_of(flavor: str, quantity: int) -> int:
    return quantity * unit_cost(flavor)

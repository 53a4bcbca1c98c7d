"""CartAllocator — pure functions over CartSelection.

No function here performs I/O or mutates its argument. "No-op" means the
very same selection object comes back.
"""

from protean.exceptions import ValidationError

from bakery.cart.flavors import (
    COOKIES_PER_DOZEN,
    FLAVOR_LABELS,
    HALF_DOZEN,
    MAX_DOZENS,
    Packaging,
    is_known,
    pieces_per_increment,
)
from bakery.cart.selection import CartSelection, FlavorPortion


def empty_selection() -> CartSelection:
    return CartSelection(dozens=None, flavors="[]", packaging=Packaging.STANDARD.value)


def target_units(selection: CartSelection) -> int:
    return (selection.dozens or 0) * COOKIES_PER_DOZEN


def current_cost(selection: CartSelection) -> int:
    return sum(p.cost for p in selection.portions)


def remaining_units(selection: CartSelection) -> int:
    return target_units(selection) - current_cost(selection)


def total_pieces(selection: CartSelection) -> int:
    return sum(p.quantity for p in selection.portions)


def is_complete(selection: CartSelection) -> bool:
    return selection.dozens is not None and current_cost(selection) == target_units(selection)


def set_target_units(selection: CartSelection, dozens: int) -> CartSelection:
    """Set the box size. If the current flavors no longer fit, all of them are cleared."""
    if not isinstance(dozens, int) or not 1 <= dozens <= MAX_DOZENS:
        raise ValidationError({"dozens": [f"Choose between 1 and {MAX_DOZENS} dozen"]})

    if current_cost(selection) > dozens * COOKIES_PER_DOZEN:
        return selection.replace(dozens=dozens, portions=[])
    return selection.replace(dozens=dozens)


def add_increment(selection: CartSelection, flavor: str) -> CartSelection:
    """Add half a dozen worth of ``flavor``: 6 cookies, or 3 of the double-weighted flavor."""
    if not is_known(flavor):
        raise ValidationError({"flavor": [f"Unknown flavor: {flavor}"]})
    if selection.dozens is None or remaining_units(selection) < HALF_DOZEN:
        return selection

    step = pieces_per_increment(flavor)
    portions = selection.portions
    existing = next((p for p in portions if p.flavor == flavor), None)
    if existing is None:
        portions.append(FlavorPortion(flavor=flavor, label=FLAVOR_LABELS[flavor], quantity=step))
    else:
        portions = [
            FlavorPortion(flavor=p.flavor, label=p.label, quantity=p.quantity + step) if p.flavor == flavor else p
            for p in portions
        ]
    return selection.replace(portions=portions)


def remove_increment(selection: CartSelection, flavor: str) -> CartSelection:
    """Take half a dozen of ``flavor`` back out; drops the flavor once it is down to one step."""
    portions = selection.portions
    existing = next((p for p in portions if p.flavor == flavor), None)
    if existing is None:
        return selection

    step = pieces_per_increment(flavor)
    if existing.quantity <= step:
        portions = [p for p in portions if p.flavor != flavor]
    else:
        portions = [
            FlavorPortion(flavor=p.flavor, label=p.label, quantity=p.quantity - step) if p.flavor == flavor else p
            for p in portions
        ]
    return selection.replace(portions=portions)


def clear_flavors(selection: CartSelection) -> CartSelection:
    return selection.replace(portions=[])


def set_packaging(selection: CartSelection, packaging: str) -> CartSelection:
    try:
        Packaging(packaging)
    except ValueError:
        raise ValidationError({"packaging": [f"Unknown packaging: {packaging}"]}) from None
    return selection.replace(packaging=packaging)


def price_selection(selection: CartSelection, price_per_dozen: int, heat_seal_fee_per_dozen: int) -> int:
    """Box price in cents. Heat sealing is charged per dozen."""
    dozens = selection.dozens or 0
    total = dozens * price_per_dozen
    if selection.packaging == Packaging.HEAT_SEALED.value:
        total += dozens * heat_seal_fee_per_dozen
    return total


def validate_for_checkout(selection: CartSelection) -> CartSelection:
    """Re-derive every cart rule from scratch; client-held carts are not trusted."""
    errors: dict[str, list[str]] = {}

    if selection.dozens is None:
        errors.setdefault("dozens", []).append("Choose a box size")

    seen = set()
    for portion in selection.portions:
        if not is_known(portion.flavor):
            errors.setdefault("flavors", []).append(f"Unknown flavor: {portion.flavor}")
            continue
        if portion.flavor in seen:
            errors.setdefault("flavors", []).append(f"{portion.label} is listed twice")
        seen.add(portion.flavor)
        if portion.quantity % pieces_per_increment(portion.flavor):
            errors.setdefault("flavors", []).append(f"{portion.label} must be added in half-dozen steps")

    if not errors and not is_complete(selection):
        errors.setdefault("flavors", []).append(
            f"Selection covers {current_cost(selection)} of {target_units(selection)} cookies"
        )

    if errors:
        raise ValidationError(errors)
    return selection

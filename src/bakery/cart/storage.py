"""Cart persistence boundary.

A selection is held client side for up to 24 hours. ``dump_selection``
produces a JSON-safe payload stamped with its expiry; ``load_selection``
turns it back into a CartSelection, or returns None when the payload has
expired or no longer parses. Loaded carts are still re-validated at checkout.
"""

import json
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ValidationError

from bakery.cart.flavors import FLAVOR_LABELS
from bakery.cart.selection import CartSelection

logger = structlog.get_logger(__name__)

CART_TTL = timedelta(hours=24)


def dump_selection(selection: CartSelection, now: datetime | None = None) -> dict:
    now = now or datetime.now(UTC)
    return {
        "dozens": selection.dozens,
        "flavors": [
            {"flavor": p.flavor, "label": p.label, "quantity": p.quantity} for p in selection.portions
        ],
        "packaging": selection.packaging,
        "expires_at": (now + CART_TTL).isoformat(),
    }


def load_selection(payload: dict | str | None, now: datetime | None = None) -> CartSelection | None:
    if not payload:
        return None
    now = now or datetime.now(UTC)

    try:
        data = json.loads(payload) if isinstance(payload, str) else dict(payload)
        expires_at = datetime.fromisoformat(data["expires_at"])
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        if now >= expires_at:
            logger.debug("Stored cart expired", expires_at=data["expires_at"])
            return None

        flavors = [
            {
                "flavor": entry["flavor"],
                "label": entry.get("label") or FLAVOR_LABELS.get(entry["flavor"], entry["flavor"]),
                "quantity": int(entry["quantity"]),
            }
            for entry in data.get("flavors") or []
        ]
        return CartSelection(
            dozens=data.get("dozens"),
            flavors=json.dumps(flavors),
            packaging=data.get("packaging") or "standard",
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        logger.warning("Discarding unreadable stored cart", error=str(exc))
        return None

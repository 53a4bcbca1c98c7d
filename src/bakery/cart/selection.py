"""CartSelection value object — the customer's cookie box, frozen.

The selection is never mutated: allocator functions take one and return a
new one. Flavor portions are kept as a JSON list of
``{"flavor", "label", "quantity"}`` where ``quantity`` counts physical
cookies, not capacity units.
"""

import json

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String, Text

from bakery.cart.flavors import COOKIES_PER_DOZEN, MAX_DOZENS, Packaging, cost_of
from bakery.domain import bakery


@bakery.value_object
class FlavorPortion:
    flavor = String(required=True, max_length=50)
    label = String(required=True, max_length=100)
    quantity = Integer(required=True, min_value=1)

    @property
    def cost(self) -> int:
        return cost_of(self.flavor, self.quantity)


@bakery.value_object
class CartSelection:
    """Dozens target, flavor portions, and packaging choice."""

    dozens = Integer(min_value=1, max_value=MAX_DOZENS)  # None until the customer picks a box size
    flavors = Text(default="[]")
    packaging = String(choices=Packaging, default=Packaging.STANDARD.value)

    @invariant.post
    def cost_must_fit_the_box(self):
        cost = sum(p.cost for p in self.portions)
        if self.dozens is None and cost:
            raise ValidationError({"flavors": ["Choose a box size before adding flavors"]})
        if self.dozens is not None and cost > self.dozens * COOKIES_PER_DOZEN:
            raise ValidationError({"flavors": [f"Selection exceeds {self.dozens} dozen"]})

    @property
    def portions(self) -> list[FlavorPortion]:
        return [FlavorPortion(**entry) for entry in json.loads(self.flavors or "[]")]

    def replace(self, **changes) -> "CartSelection":
        values = {
            "dozens": self.dozens,
            "flavors": self.flavors,
            "packaging": self.packaging,
        }
        if "portions" in changes:
            portions = changes.pop("portions")
            values["flavors"] = json.dumps(
                [{"flavor": p.flavor, "label": p.label, "quantity": p.quantity} for p in portions]
            )
        values.update(changes)
        return CartSelection(**values)

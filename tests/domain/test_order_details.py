import json
from datetime import date

import pytest
from bakery.order.details import (
    CakeOrderDetails,
    TastingOrderDetails,
    WeddingOrderDetails,
    build_details,
    dump_details,
    load_details,
)
from protean.exceptions import ValidationError


class TestBuildDetails:
    def test_shape_follows_order_type(self):
        details = build_details(
            "cake",
            {"occasion": "Birthday", "size": "8 inch", "shape": "round", "flavor": "vanilla", "servings": 20},
        )
        assert isinstance(details, CakeOrderDetails)
        assert details.servings == 20

    def test_fields_of_another_type_rejected(self):
        with pytest.raises(ValidationError) as exc:
            build_details("cake", {"occasion": "Birthday", "size": "8", "shape": "round", "flavor": "x", "guest_count": 80})
        assert "guest_count" in exc.value.messages["details"][0]

    def test_required_fields_enforced(self):
        with pytest.raises(ValidationError):
            build_details("wedding", {"guest_count": 80})

    def test_iso_dates_coerced(self):
        details = build_details(
            "wedding",
            {"wedding_date": "2026-09-12", "guest_count": 120, "services_needed": "cake, dessert table"},
        )
        assert isinstance(details, WeddingOrderDetails)
        assert details.wedding_date == date(2026, 9, 12)

    def test_bad_date_rejected(self):
        with pytest.raises(ValidationError) as exc:
            build_details("tasting", {"tasting_type": "cake", "wedding_date": "next spring"})
        assert "wedding_date" in exc.value.messages

    def test_tasting_type_is_restricted(self):
        assert isinstance(build_details("tasting", {"tasting_type": "both"}), TastingOrderDetails)
        with pytest.raises(ValidationError):
            build_details("tasting", {"tasting_type": "pies"})

    def test_large_cookie_orders_start_at_four_dozen(self):
        with pytest.raises(ValidationError):
            build_details("cookies_large", {"quantity": 3, "flavor_mix": "assorted"})

    def test_unknown_order_type(self):
        with pytest.raises(ValidationError) as exc:
            build_details("pies", {})
        assert "order_type" in exc.value.messages


class TestStorage:
    def test_stored_as_json_and_reloaded(self):
        details = build_details(
            "wedding",
            {"wedding_date": "2026-09-12", "guest_count": 120, "services_needed": "cake"},
        )
        raw = dump_details(details)

        assert json.loads(raw)["wedding_date"] == "2026-09-12"
        assert load_details("wedding", raw) == details

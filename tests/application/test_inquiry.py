"""Application tests for inquiry submission."""

import json
from datetime import UTC, date, datetime, timedelta

import pytest
from bakery.coupon.management import CreateCoupon
from bakery.errors import ConflictError
from bakery.order.order import Order
from bakery.slot.reservation import find_slot, reserve_slot
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

AS_OF = datetime(2026, 2, 1, 9, 0, tzinfo=UTC)
SLOT_DAY = date(2026, 3, 1)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


def _stored_orders():
    return current_domain.repository_for(Order)._dao.query.all().items


class TestCakeInquiry:
    def test_submission_holds_the_slot(self, place_inquiry):
        order = _order(place_inquiry())

        assert order.status == "inquiry"
        assert order.slot_id == "cake:2026-03-01:10:00"
        assert order.order_details.occasion == "Birthday"

        slot = find_slot(order.slot_id)
        assert slot.reserved == 1
        assert str(slot.holds[0].order_id) == str(order.id)

    def test_claims_hold_taken_before_submission(self, place_inquiry):
        hold_id = reserve_slot("cake", SLOT_DAY, "10:00", as_of=AS_OF)

        order = _order(place_inquiry(hold_id=hold_id))

        slot = find_slot("cake:2026-03-01:10:00")
        assert slot.reserved == 1
        assert str(order.slot_hold_id) == hold_id
        assert str(slot.holds[0].order_id) == str(order.id)

    def test_full_slot_rejects_the_inquiry(self, place_inquiry):
        place_inquiry()
        place_inquiry()

        with pytest.raises(ConflictError) as exc:
            place_inquiry()
        assert exc.value.code == "SLOT_FULL"
        assert len(_stored_orders()) == 2

    def test_time_without_date_rejected(self, place_inquiry):
        with pytest.raises(ValidationError) as exc:
            place_inquiry(requested_date=None)
        assert "requested_date" in exc.value.messages

    def test_details_must_fit_order_type(self, place_inquiry):
        with pytest.raises(ValidationError):
            place_inquiry(details=json.dumps({"guest_count": 100}))

    def test_cart_only_for_cookies(self, place_inquiry, cookie_cart):
        with pytest.raises(ValidationError) as exc:
            place_inquiry(cart=cookie_cart())
        assert "cart" in exc.value.messages


class TestCookieInquiry:
    def _submit(self, place_inquiry, cart, **overrides):
        kwargs = {
            "details": None,
            "cart": cart,
            "requested_date": SLOT_DAY,
            "requested_time": "10:00",
            **overrides,
        }
        return place_inquiry("cookies", **kwargs)

    def test_cart_is_priced_and_recorded(self, place_inquiry, cookie_cart):
        order = _order(self._submit(place_inquiry, cookie_cart()))

        details = order.order_details
        assert details.dozens == 1
        assert details.packaging == "standard"
        assert json.loads(details.flavors) == [
            {"flavor": "chocolate_chip", "label": "Chocolate Chip", "quantity": 12}
        ]
        assert order.total_amount == 3000
        assert order.slot_id == "cookies:2026-03-01:10:00"

    def test_heat_sealing_adds_fee(self, place_inquiry, cookie_cart):
        order = _order(self._submit(place_inquiry, cookie_cart("heat_sealed")))
        assert order.total_amount == 3500

    def test_coupon_discount_applied(self, place_inquiry, cookie_cart):
        current_domain.process(
            CreateCoupon(code="SWEET10", discount_type="percentage", discount_value=10),
            asynchronous=False,
        )

        order = _order(self._submit(place_inquiry, cookie_cart(), coupon_code="sweet10"))
        assert order.coupon_code == "SWEET10"
        assert order.discount_amount == 300
        assert order.total_amount == 2700

    def test_unusable_coupon_rejected(self, place_inquiry, cookie_cart):
        with pytest.raises(ValidationError) as exc:
            self._submit(place_inquiry, cookie_cart(), coupon_code="NOPE")
        assert "coupon_code" in exc.value.messages
        assert _stored_orders() == []

    def test_pickup_time_required(self, place_inquiry, cookie_cart):
        with pytest.raises(ValidationError) as exc:
            self._submit(place_inquiry, cookie_cart(), requested_time=None)
        assert "requested_time" in exc.value.messages
        assert _stored_orders() == []

    def test_pickup_date_required(self, place_inquiry, cookie_cart):
        with pytest.raises(ValidationError) as exc:
            self._submit(place_inquiry, cookie_cart(), requested_date=None, requested_time=None)
        assert "requested_time" in exc.value.messages

    def test_expired_cart_rejected(self, place_inquiry, cookie_cart):
        with pytest.raises(ValidationError) as exc:
            self._submit(place_inquiry, cookie_cart(), as_of=AS_OF + timedelta(days=2))
        assert "cart" in exc.value.messages

    def test_incomplete_cart_rejected(self, place_inquiry):
        half_box = json.dumps(
            {
                "dozens": 1,
                "flavors": [{"flavor": "lemon_sugar", "quantity": 6}],
                "packaging": "standard",
                "expires_at": (AS_OF + timedelta(hours=1)).isoformat(),
            }
        )
        with pytest.raises(ValidationError):
            self._submit(place_inquiry, half_box)


class TestWeddingInquiry:
    def test_no_slot_without_pickup_time(self, place_inquiry):
        order = _order(place_inquiry("wedding"))

        assert order.is_wedding
        assert order.slot_id is None
        assert order.order_details.guest_count == 120

    def test_missing_required_details(self, place_inquiry):
        with pytest.raises(ValidationError):
            place_inquiry("wedding", details=json.dumps({"guest_count": 80}))

    def test_invalid_email(self, place_inquiry):
        with pytest.raises(ValidationError) as exc:
            place_inquiry("wedding", customer_email="not-an-email")
        assert "customer_email" in exc.value.messages

from bakery.errors import ConflictError, ExpiredError
from protean.exceptions import InvalidOperationError


class TestConflictError:
    def test_keeps_field_messages(self):
        exc = ConflictError({"slot": ["Slot is full"]}, code="SLOT_FULL")

        assert exc.code == "SLOT_FULL"
        assert exc.messages == {"slot": ["Slot is full"]}
        assert isinstance(exc, InvalidOperationError)

    def test_default_code(self):
        assert ConflictError({"order": ["Nope"]}).code == "CONFLICT"


class TestExpiredError:
    def test_keeps_field_messages(self):
        exc = ExpiredError({"valid_until": ["Quote expired on 2026-03-01"]}, code="QUOTE_EXPIRED")

        assert exc.code == "QUOTE_EXPIRED"
        assert exc.messages == {"valid_until": ["Quote expired on 2026-03-01"]}

    def test_default_code(self):
        assert ExpiredError({"contract": ["Too late"]}).code == "EXPIRED"

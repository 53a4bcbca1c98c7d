"""Error types raised by the bakery domain on top of Protean's exceptions.

ValidationError and ObjectNotFoundError come straight from
``protean.exceptions``. The two below cover consistency failures that are
safe to retry with fresh data (conflicts) and operations attempted after a
validity window has closed (expiry).
"""

from protean.exceptions import InvalidOperationError


class ConflictError(InvalidOperationError):
    """State no longer allows the operation: slot full, coupon exhausted, illegal transition."""

    def __init__(self, messages, code=None, **kwargs):
        self.code = code or "CONFLICT"
        super().__init__(messages, **kwargs)
        self.messages = messages


class ExpiredError(InvalidOperationError):
    """A quote or contract was acted on after its ``valid_until`` date."""

    def __init__(self, messages, code=None, **kwargs):
        self.code = code or "EXPIRED"
        super().__init__(messages, **kwargs)
        self.messages = messages

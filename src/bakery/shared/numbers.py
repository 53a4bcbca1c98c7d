"""Human-readable reference numbers and customer-facing tokens."""

import secrets
import string
from datetime import UTC, datetime

_BASE36 = string.digits + string.ascii_uppercase


def base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _stamp(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return base36(int(now.timestamp() * 1000)) + "".join(secrets.choice(_BASE36) for _ in range(2))


def order_number(now: datetime | None = None) -> str:
    """``BBC-YYMMDD-XXXX``"""
    now = now or datetime.now(UTC)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"BBC-{now:%y%m%d}-{suffix}"


def quote_number(now: datetime | None = None) -> str:
    return f"Q-{_stamp(now)}"


def contract_number(now: datetime | None = None) -> str:
    return f"C-{_stamp(now)}"


def new_token() -> str:
    """Unguessable token for approval and signing links."""
    return secrets.token_urlsafe(24)

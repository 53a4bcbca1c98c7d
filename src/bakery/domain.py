"""Bakery bounded context — bookings, quotes, contracts and orders.

Handles slot availability and reservation, the cookie cart allocator,
coupon validation, the quote and contract lifecycles, and the order
state machine that ties them together.
"""

import structlog
from protean.domain import Domain

bakery = Domain(name="bakery")

logger = structlog.get_logger(__name__)

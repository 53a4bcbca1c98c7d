from bakery.api.errors import register_bakery_exception_handlers
from bakery.api.routes import (
    availability_router,
    contract_router,
    coupon_router,
    maintenance_router,
    order_router,
    quote_router,
    settings_router,
    slot_router,
)

ROUTERS = [
    availability_router,
    slot_router,
    coupon_router,
    order_router,
    quote_router,
    contract_router,
    settings_router,
    maintenance_router,
]

__all__ = [
    "ROUTERS",
    "availability_router",
    "contract_router",
    "coupon_router",
    "maintenance_router",
    "order_router",
    "quote_router",
    "register_bakery_exception_handlers",
    "settings_router",
    "slot_router",
]

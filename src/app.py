"""Bakery FastAPI application.

Processes commands synchronously over HTTP. Every request runs inside the
bakery domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay; logging follows the same setting.
from bakery.domain import bakery
from bakery.utils.logging import bind_request_context, clear_request_context, configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

configure_logging()
bakery.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Bakery Booking API",
    description="Slot booking, quotes, contracts and orders for a custom bakery",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the bakery domain context and bind request details to the log context."""
    bind_request_context(method=request.method, path=request.url.path)
    try:
        with bakery.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_request_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from bakery.api import ROUTERS, register_bakery_exception_handlers  # noqa: E402

for router in ROUTERS:
    app.include_router(router)

register_bakery_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": bakery.name}})

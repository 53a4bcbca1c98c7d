"""HTTP mapping for bakery errors.

Every failure answers with ``{"error": <code>, "messages": {...}}``:

    ValidationError       -> 400
    ObjectNotFoundError   -> 404
    ConflictError         -> 409
    ExpiredError          -> 410
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from bakery.errors import ConflictError, ExpiredError

logger = structlog.get_logger(__name__)


def _messages(exc) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    return {"_error": [str(messages or exc)]}


def error_response(status_code: int, code: str, messages: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "messages": messages})


def register_bakery_exception_handlers(app: FastAPI) -> None:
    """Protean's default handlers, overridden with the bakery error body."""
    register_exception_handlers(app)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return error_response(400, "VALIDATION_ERROR", _messages(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        messages: dict[str, list[str]] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
            messages.setdefault(field, []).append(error["msg"])
        return error_response(400, "VALIDATION_ERROR", messages)

    @app.exception_handler(ObjectNotFoundError)
    async def handle_not_found(request: Request, exc: ObjectNotFoundError):
        return error_response(404, "NOT_FOUND", _messages(exc))

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.info("Request conflicted", path=request.url.path, code=exc.code)
        return error_response(409, exc.code, _messages(exc))

    @app.exception_handler(ExpiredError)
    async def handle_expired(request: Request, exc: ExpiredError):
        return error_response(410, exc.code, _messages(exc))

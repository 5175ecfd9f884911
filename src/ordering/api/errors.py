"""HTTP error mapping for the storefront API.

Every error body has the shape ``{"error": <code>, "message": ..., "field"?, "line"?}``.
Protean's own handlers stay registered for anything not mapped here
(e.g. ``ObjectNotFoundError`` → 404).
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError
from protean.integrations.fastapi import register_exception_handlers

from ordering.errors import (
    GatewayError,
    InvalidTransitionError,
    MalformedEventError,
    OrderingError,
    OrderResolutionError,
    ReconciliationFatalError,
    SignatureError,
    StockError,
    TotalMismatchError,
)

logger = structlog.get_logger(__name__)

# Most specific class first; lookup walks the exception's MRO.
_STATUS_CODES = {
    StockError: 409,
    TotalMismatchError: 409,
    GatewayError: 502,
    SignatureError: 401,
    MalformedEventError: 400,
    OrderResolutionError: 503,
    ReconciliationFatalError: 500,
}


def status_code_for(exc: OrderingError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODES:
            return _STATUS_CODES[cls]
    return 400


def _first_error(messages: dict) -> tuple[str | None, str]:
    for field, errors in messages.items():
        message = errors[0] if isinstance(errors, list) and errors else str(errors)
        return field, message
    return None, "Invalid request"


async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.code, message=exc.message)
    headers = {"Retry-After": "5"} if exc.retryable and status_code == 503 else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    field, message = _first_error(exc.messages)
    content = {"error": "validation_error", "message": message}
    if field is not None:
        content["field"] = field
    return JSONResponse(status_code=400, content=content)


async def invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={
            "error": exc.code,
            "message": f"Cannot transition from {exc.current} to {exc.target}",
            "field": "status",
        },
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    content = {"error": "validation_error", "message": first.get("msg", "Invalid request")}
    if location:
        content["field"] = ".".join(location)
    return JSONResponse(status_code=400, content=content)


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(OrderingError, ordering_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(InvalidTransitionError, invalid_transition_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

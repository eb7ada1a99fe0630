"""Global exception handlers.

Every error leaves the service in the same envelope::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": {...}}}

Domain errors (``AppError`` subclasses) are mapped to a status code by type.
For 5xx responses the message is replaced by a generic one and details are
dropped, since they describe internals (store locations, retry counts).
Anything that is not an ``AppError`` becomes ``internal_server_error``.

Errors raised as ``HTTPException`` by the admission dependencies keep
FastAPI's ``{"detail": ...}`` shape.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shortener.core.errors import (
    AllocationExhaustedError,
    AppError,
    AuthenticationAppError,
    ConflictAppError,
    NotFoundAppError,
    QuotaExceededAppError,
    StoreUnavailableError,
    ValidationAppError,
)
from shortener.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "An internal error occurred. Please try again later."

# Checked in order; the first matching class wins.
_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (ValidationAppError, 400),
    (AuthenticationAppError, 401),
    (NotFoundAppError, 404),
    (ConflictAppError, 409),
    (QuotaExceededAppError, 429),
    (AllocationExhaustedError, 500),
    (StoreUnavailableError, 500),
)


def status_for_error(exc: AppError) -> int:
    """Return the HTTP status code for a domain error (400 when unmapped)."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        body["details"] = details
    return {"error": body}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate a domain error into its JSON error response.

    A ``QuotaExceededAppError`` carrying ``retry_after`` also sets the
    ``Retry-After`` header.
    """
    status_code = status_for_error(exc)
    server_side = status_code >= 500

    (logger.error if server_side else logger.warning)(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    if server_side:
        content = _error_body(exc.code, GENERIC_SERVER_MESSAGE)
    else:
        content = _error_body(exc.code, exc.message, exc.details)

    headers = None
    if isinstance(exc, QuotaExceededAppError) and exc.details and "retry_after" in exc.details:
        headers = {"Retry-After": str(int(exc.details["retry_after"]))}

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Safety net for unexpected exceptions.

    The exception type and text are logged; the client only sees a generic
    message and the request id.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the domain and fallback handlers on ``app``."""

    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)

"""HTTP middleware for request ID propagation and access logging.

The middleware:
- Accepts an incoming X-Request-ID header (configurable) or generates a UUID
- Stores request_id in contextvars so every log line of the request carries it
- Echoes the request_id and total duration in response headers
- Emits one ``request.completed`` log line per request, carrying the hashed
  subject when the request was authenticated
- Clears context after completion to prevent leaks between requests

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from shortener.core.logging import clear_request_id, hash_identifier, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id to the request and its response.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` and
            ``X-Request-Duration-ms`` headers added.
    """

    header_name = request.app.state.container.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        extra = {
            "request_method": request.method,
            "request_path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
        # call_next runs the route in its own task, so the bound subject is
        # read back from request state rather than from context
        identity = getattr(request.state, "identity", None)
        if identity is not None:
            extra["subject_hash"] = hash_identifier(identity.subject_id)
        logger.info("request.completed", extra=extra)
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response

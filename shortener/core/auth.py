"""Credential authentication for protected routes.

The bearer credential travels in a named cookie (``AUTH_COOKIE_NAME``,
default ``token``) written by the login route. This module provides the
FastAPI dependency that turns that cookie into a verified ``Identity``.

Usage:
    @router.get("/protected")
    def protected(identity: Identity = Depends(require_identity)):
        ...
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from shortener.core.container import ServiceContainer, get_container
from shortener.core.errors import AuthenticationAppError
from shortener.models import Identity


def read_credential(request: Request, cookie_name: str) -> str | None:
    """Return the credential from the request's cookie slot, if any."""
    credential = request.cookies.get(cookie_name)
    return credential.strip() if credential else None


async def require_identity(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> Identity:
    """FastAPI dependency resolving the caller's identity.

    Absence of the cookie is rejected before any signature work happens.
    FastAPI caches the result per request, so routes that also depend on
    ``enforce_quota`` verify the credential only once.

    Declared ``async`` so it runs in the request's own context: the subject
    bound during authentication stays visible to the sync dependencies and
    the route, which copy that context into the threadpool.

    Raises:
        HTTPException: 401 Unauthorized if the credential is missing or invalid.
    """
    credential = read_credential(request, container.settings.auth.cookie_name)
    try:
        identity = container.pipeline.authenticate(credential)
    except AuthenticationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=exc.message,
        ) from exc

    request.state.identity = identity
    return identity

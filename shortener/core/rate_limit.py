"""Quota enforcement dependency for tier-gated routes.

This module wires the admission pipeline's quota stage into the HTTP layer.
It depends on ``require_identity`` so the credential is always verified
before a request is counted.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, status

from shortener.adapters.rate_limit.base import QuotaDecision
from shortener.core.auth import require_identity
from shortener.core.container import ServiceContainer, get_container
from shortener.core.errors import QuotaExceededAppError
from shortener.models import Identity


def _rate_limit_headers(details: dict) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(details.get("limit", 0)),
        "X-RateLimit-Remaining": str(details.get("remaining", 0)),
    }
    if "retry_after" in details:
        headers["Retry-After"] = str(details["retry_after"])
        headers["X-RateLimit-Reset"] = str(details["reset_at"])
    return headers


def enforce_quota(
    identity: Identity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
) -> QuotaDecision:
    """FastAPI dependency consuming one unit of the caller's quota.

    Returns:
        QuotaDecision for the admitted request.

    Raises:
        HTTPException: 429 Too Many Requests when the quota is used up.
    """
    try:
        return container.pipeline.admit(identity)
    except QuotaExceededAppError as exc:
        headers: dict[str, str] = {}
        if container.settings.quota.include_headers:
            headers = _rate_limit_headers(dict(exc.details or {}))

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=exc.message,
            headers=headers or None,
        ) from exc

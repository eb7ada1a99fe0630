from __future__ import annotations

from fastapi import APIRouter, Depends

from shortener.core.container import ServiceContainer, get_container

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(container: ServiceContainer = Depends(get_container)) -> dict:
    """Health check endpoint.

    Reports liveness and the configured storage backend. It does not contact
    the backend, so a Redis outage does not fail the liveness check.

    Returns:
        dict: ``{"status": "ok", "store": <backend>}``.
    """

    return {"status": "ok", "store": container.settings.store.backend}

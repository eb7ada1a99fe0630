from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from shortener.core.container import ServiceContainer, get_container

router = APIRouter(tags=["Redirect"])


@router.get("/{code}", response_class=RedirectResponse, status_code=status.HTTP_301_MOVED_PERMANENTLY)
def redirect(code: str, container: ServiceContainer = Depends(get_container)) -> RedirectResponse:
    """Redirect a short code to its target URL (404 if unknown)."""
    mapping = container.links.resolve(code)
    return RedirectResponse(mapping.target_url, status_code=status.HTTP_301_MOVED_PERMANENTLY)

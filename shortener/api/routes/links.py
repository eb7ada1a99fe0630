"""Authenticated link routes.

``/shorten`` is tier-gated: the credential is verified and one unit of the
caller's quota is consumed before the handler runs. Listing only requires a
valid credential.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from shortener.core.auth import require_identity
from shortener.core.container import ServiceContainer, get_container
from shortener.core.rate_limit import enforce_quota
from shortener.models import Identity
from shortener.schemas.links import MappingResponse, ShortenRequest, ShortenResponse

router = APIRouter(tags=["Links"])


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_quota)],
)
def shorten(
    body: ShortenRequest,
    identity: Identity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
) -> ShortenResponse:
    """Create a short link for the caller.

    Raises:
        ShortCodeConflictError: 409 if the preferred code is taken or reserved.
        AllocationExhaustedError: 500 if no free random code was found.
    """
    mapping = container.links.shorten(
        identity,
        body.long_url,
        preferred_code=body.preferred_short_url,
    )
    return ShortenResponse(short_url=mapping.code)


@router.get("/shortened-urls", response_model=list[MappingResponse])
def list_shortened_urls(
    identity: Identity = Depends(require_identity),
    container: ServiceContainer = Depends(get_container),
) -> list[MappingResponse]:
    """Return every short link created by the caller."""
    return [MappingResponse.from_mapping(m) for m in container.links.list_for(identity)]

"""Pydantic schemas for short link creation and listing.

Field names accept both the camelCase wire names (``longUrl``,
``preferredShortUrl``) and their snake_case equivalents; responses use
camelCase.

The target URL is validated as an http(s) URL but stored exactly as sent;
pydantic's URL type would otherwise normalise it (``https://example.com``
becomes ``https://example.com/``).
"""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from shortener.models import ShortCodeMapping

_HTTP_URL = TypeAdapter(AnyHttpUrl)


def _check_http_url(value: str) -> str:
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError as exc:
        raise ValueError(exc.errors()[0]["msg"]) from exc
    return value


HttpUrlString = Annotated[str, AfterValidator(_check_http_url)]


class ShortenRequest(BaseModel):
    """Request to create a short link."""

    model_config = ConfigDict(populate_by_name=True)

    long_url: HttpUrlString = Field(
        ...,
        alias="longUrl",
        description="Target URL the short code redirects to.",
    )
    preferred_short_url: str | None = Field(
        default=None,
        alias="preferredShortUrl",
        min_length=1,
        max_length=128,
        pattern=r"^[^/?#\s]+$",
        description="Optional custom short code; a 409 is returned if it is taken or reserved.",
    )


class ShortenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    short_url: str = Field(..., alias="shortUrl", description="The allocated short code.")


class MappingResponse(BaseModel):
    """A stored short link."""

    model_config = ConfigDict(populate_by_name=True)

    short_url: str = Field(..., alias="shortUrl")
    long_url: str = Field(..., alias="longUrl")
    user_id: str = Field(..., alias="userId")

    @classmethod
    def from_mapping(cls, mapping: ShortCodeMapping) -> "MappingResponse":
        return cls(short_url=mapping.code, long_url=mapping.target_url, user_id=mapping.owner_id)

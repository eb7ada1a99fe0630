"""Create, list and resolve short links."""

from __future__ import annotations

import logging

from shortener.adapters.storage.base import AbstractMappingStore
from shortener.core.errors import NotFoundAppError
from shortener.models import Identity, ShortCodeMapping
from shortener.services.code_allocator import CodeAllocator

logger = logging.getLogger(__name__)


class LinkService:
    def __init__(self, store: AbstractMappingStore, allocator: CodeAllocator) -> None:
        self._store = store
        self._allocator = allocator

    def shorten(
        self,
        identity: Identity,
        target_url: str,
        preferred_code: str | None = None,
    ) -> ShortCodeMapping:
        mapping = self._allocator.create_mapping(
            target_url,
            owner_id=identity.subject_id,
            preferred_code=preferred_code,
        )
        logger.info(
            "link.created",
            extra={"short_code": mapping.code, "preferred": bool(preferred_code)},
        )
        return mapping

    def list_for(self, identity: Identity) -> list[ShortCodeMapping]:
        return self._store.find_by_owner(identity.subject_id)

    def resolve(self, code: str) -> ShortCodeMapping:
        """Return the mapping for ``code``.

        Raises:
            NotFoundAppError: No mapping exists for the code.
        """
        mapping = self._store.find_by_code(code)
        if mapping is None:
            raise NotFoundAppError(code="short_url_not_found", message="Short URL not found")
        return mapping

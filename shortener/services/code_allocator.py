"""Short code allocation.

Random codes are drawn uniformly from the Base62 alphabet [A-Za-z0-9]. With
the default length of 6 the code space holds 62**6 (about 5.68e10) codes, so
at realistic mapping counts a fresh candidate collides with negligible
probability and allocation finishes in one or two lookups. The retry ceiling
only guards against a misbehaving store.

The existence check and the write are separate store calls; correctness rests
on the store rejecting a duplicate code at write time, which is treated
exactly like a lookup-time collision.

Reserved codes (paths of the app's own fixed routes, such as ``health`` or
``docs``) count as taken: a mapping stored under one could never be reached
through the redirect route.

Example:
    >>> from shortener.adapters.storage import InMemoryMappingStore
    >>> allocator = CodeAllocator(InMemoryMappingStore())
    >>> mapping = allocator.create_mapping("https://example.com", owner_id="u-1")
    >>> len(mapping.code)
    6
"""

from __future__ import annotations

import logging
import random
import secrets
import string
from typing import Iterable

from shortener.adapters.storage.base import AbstractMappingStore
from shortener.core.config import ShortCodeSettings
from shortener.core.errors import AllocationExhaustedError, ShortCodeConflictError
from shortener.models import ShortCodeMapping

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


class CodeAllocator:
    """Allocate unique short codes against a mapping store.

    Attributes:
        length: Number of characters in a generated code.
        max_attempts: Candidates tried before giving up.
        reserved_codes: Codes that are never handed out.
    """

    def __init__(
        self,
        store: AbstractMappingStore,
        *,
        length: int = 6,
        max_attempts: int = 10,
        rng: random.Random | None = None,
        reserved_codes: Iterable[str] = (),
    ) -> None:
        if length < 1:
            raise ValueError("length must be >= 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._store = store
        self._rng = rng or secrets.SystemRandom()
        self.length = length
        self.max_attempts = max_attempts
        self.reserved_codes = frozenset(reserved_codes)

    @classmethod
    def from_settings(
        cls,
        store: AbstractMappingStore,
        shortcode_settings: ShortCodeSettings,
        *,
        reserved_codes: Iterable[str] = (),
    ) -> "CodeAllocator":
        return cls(
            store,
            length=shortcode_settings.length,
            max_attempts=shortcode_settings.max_attempts,
            reserved_codes=reserved_codes,
        )

    def generate_candidate(self) -> str:
        """Return a random code; it is not checked against the store."""
        return "".join(self._rng.choice(ALPHABET) for _ in range(self.length))

    def _is_taken(self, code: str) -> bool:
        return code in self.reserved_codes or self._store.exists(code)

    def allocate(self, preferred_code: str | None = None) -> str:
        """Return a code that is not yet taken according to the store.

        Args:
            preferred_code: Code requested by the caller, accepted as-is when
                free.

        Returns:
            The preferred code, or a fresh random code.

        Raises:
            ShortCodeConflictError: The preferred code already exists or is
                reserved.
            AllocationExhaustedError: Every random candidate collided.
        """
        if preferred_code:
            if self._is_taken(preferred_code):
                raise self._conflict(preferred_code)
            return preferred_code

        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generate_candidate()
            if not self._is_taken(candidate):
                return candidate
            logger.info("allocator.collision", extra={"attempt": attempt, "stage": "lookup"})

        raise self._exhausted()

    def create_mapping(
        self,
        target_url: str,
        owner_id: str,
        preferred_code: str | None = None,
    ) -> ShortCodeMapping:
        """Allocate a code and store the mapping.

        A write-time conflict on a random code is retried with a new
        candidate; lookup and write collisions share the same attempt budget.

        Raises:
            ShortCodeConflictError: The preferred code is taken (at lookup or
                write time).
            AllocationExhaustedError: The retry ceiling was hit.
            StoreUnavailableError: The store could not be reached.
        """
        if preferred_code:
            code = self.allocate(preferred_code)
            mapping = ShortCodeMapping(code=code, target_url=target_url, owner_id=owner_id)
            try:
                self._store.store(mapping)
            except ShortCodeConflictError:
                raise self._conflict(preferred_code)
            return mapping

        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generate_candidate()
            if self._is_taken(candidate):
                logger.info("allocator.collision", extra={"attempt": attempt, "stage": "lookup"})
                continue

            mapping = ShortCodeMapping(code=candidate, target_url=target_url, owner_id=owner_id)
            try:
                self._store.store(mapping)
            except ShortCodeConflictError:
                logger.info("allocator.collision", extra={"attempt": attempt, "stage": "write"})
                continue
            return mapping

        raise self._exhausted()

    def _conflict(self, code: str) -> ShortCodeConflictError:
        logger.info("allocator.preferred_code_taken", extra={"short_code": code})
        return ShortCodeConflictError(
            code="short_code_conflict",
            message="Short URL already exists",
            details={"short_code": code},
        )

    def _exhausted(self) -> AllocationExhaustedError:
        logger.error(
            "allocator.retry_exhausted",
            extra={"attempts": self.max_attempts, "length": self.length},
        )
        return AllocationExhaustedError(
            code="allocation_retry_exhausted",
            message="Could not allocate a unique short code",
            details={"attempts": self.max_attempts},
        )

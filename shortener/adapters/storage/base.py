"""Abstract store interfaces for short code mappings and accounts.

The services depend on these interfaces so the backing store (process memory,
Redis, a SQL database) can be swapped without touching business logic.

Every implementation must enforce uniqueness at write time: the existence
check used by the code allocator is only an optimisation, and two allocators
may race between check and write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from shortener.models import ShortCodeMapping, UserRecord


class AbstractMappingStore(ABC):
    """Interface for short code mapping persistence.

    Methods:
        exists(code) -> bool
        store(mapping) -> None
            Raises ShortCodeConflictError if the code is already taken.
            Raises StoreUnavailableError on connectivity issues.
        find_by_code(code) -> ShortCodeMapping | None
        find_by_owner(subject_id) -> list[ShortCodeMapping]

    NOTE:
        Mappings are immutable once stored; there is no update path.
    """

    @abstractmethod
    def exists(self, code: str) -> bool:
        """Return True if a mapping with ``code`` is already stored."""
        pass

    @abstractmethod
    def store(self, mapping: ShortCodeMapping) -> None:
        """Persist a new mapping.

        Args:
            mapping (ShortCodeMapping):
                The mapping to insert.

        Raises:
            ShortCodeConflictError:
                If a mapping with the same code already exists.

            StoreUnavailableError:
                If the data store cannot be reached.
        """
        pass

    @abstractmethod
    def find_by_code(self, code: str) -> ShortCodeMapping | None:
        """Return the mapping for ``code``, or None when it does not exist."""
        pass

    @abstractmethod
    def find_by_owner(self, subject_id: str) -> list[ShortCodeMapping]:
        """Return every mapping created by ``subject_id`` (possibly empty)."""
        pass


class AbstractUserStore(ABC):
    """Interface for the identity store used by registration and login."""

    @abstractmethod
    def find_by_email(self, email: str) -> UserRecord | None:
        """Return the account registered under ``email``, or None."""
        pass

    @abstractmethod
    def create(self, user: UserRecord) -> None:
        """Persist a new account.

        Raises:
            EmailAlreadyRegisteredError:
                If an account with the same email already exists.

            StoreUnavailableError:
                If the data store cannot be reached.
        """
        pass

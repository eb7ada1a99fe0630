"""In-memory stores for mappings and accounts.

Suitable for development, tests and single-process deployments. State is lost
on restart.
"""

from __future__ import annotations

import threading
from collections import defaultdict

from shortener.adapters.storage.base import AbstractMappingStore, AbstractUserStore
from shortener.core.errors import EmailAlreadyRegisteredError, ShortCodeConflictError
from shortener.models import ShortCodeMapping, UserRecord


class InMemoryMappingStore(AbstractMappingStore):
    """Thread-safe mapping store; the lock makes check-and-insert atomic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_code: dict[str, ShortCodeMapping] = {}
        self._codes_by_owner: dict[str, list[str]] = defaultdict(list)

    def exists(self, code: str) -> bool:
        with self._lock:
            return code in self._by_code

    def store(self, mapping: ShortCodeMapping) -> None:
        with self._lock:
            if mapping.code in self._by_code:
                raise ShortCodeConflictError(
                    code="short_code_conflict",
                    message="Short URL already exists",
                    details={"short_code": mapping.code},
                )
            self._by_code[mapping.code] = mapping
            self._codes_by_owner[mapping.owner_id].append(mapping.code)

    def find_by_code(self, code: str) -> ShortCodeMapping | None:
        with self._lock:
            return self._by_code.get(code)

    def find_by_owner(self, subject_id: str) -> list[ShortCodeMapping]:
        with self._lock:
            return [self._by_code[code] for code in self._codes_by_owner.get(subject_id, [])]

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_code)


class InMemoryUserStore(AbstractUserStore):
    """Thread-safe account store keyed by case-insensitive email."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_email: dict[str, UserRecord] = {}

    def find_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            return self._by_email.get(email.lower())

    def create(self, user: UserRecord) -> None:
        key = user.email.lower()
        with self._lock:
            if key in self._by_email:
                raise EmailAlreadyRegisteredError(
                    code="email_already_registered",
                    message="An account with this email already exists",
                )
            self._by_email[key] = user

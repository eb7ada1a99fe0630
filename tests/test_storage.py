"""Tests for the in-memory mapping and account stores."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from shortener.adapters.storage.in_memory import InMemoryMappingStore, InMemoryUserStore
from shortener.core.errors import EmailAlreadyRegisteredError, ShortCodeConflictError
from shortener.models import ShortCodeMapping, Tier, UserRecord


def _mapping(code: str, owner: str = "u-1") -> ShortCodeMapping:
    return ShortCodeMapping(code=code, target_url=f"https://example.com/{code}", owner_id=owner)


class TestMappingStore:
    def test_store_and_find(self) -> None:
        store = InMemoryMappingStore()
        mapping = _mapping("abc123")

        store.store(mapping)

        assert store.exists("abc123")
        assert store.find_by_code("abc123") == mapping
        assert store.find_by_code("missing") is None

    def test_codes_are_case_sensitive(self) -> None:
        store = InMemoryMappingStore()
        store.store(_mapping("AbC"))

        assert store.exists("AbC")
        assert not store.exists("abc")

    def test_duplicate_code_is_rejected(self) -> None:
        store = InMemoryMappingStore()
        store.store(_mapping("dup", owner="u-1"))

        with pytest.raises(ShortCodeConflictError) as exc_info:
            store.store(_mapping("dup", owner="u-2"))

        assert exc_info.value.code == "short_code_conflict"
        assert store.find_by_code("dup").owner_id == "u-1"
        assert store.find_by_owner("u-2") == []

    def test_find_by_owner_keeps_insertion_order(self) -> None:
        store = InMemoryMappingStore()
        for code in ("c1", "c2", "c3"):
            store.store(_mapping(code, owner="u-1"))
        store.store(_mapping("other", owner="u-2"))

        assert [m.code for m in store.find_by_owner("u-1")] == ["c1", "c2", "c3"]
        assert store.find_by_owner("nobody") == []

    def test_concurrent_writes_of_same_code_admit_one(self) -> None:
        store = InMemoryMappingStore()
        workers = 32
        barrier = threading.Barrier(workers)

        def write(i: int) -> bool:
            barrier.wait()
            try:
                store.store(_mapping("race", owner=f"u-{i}"))
            except ShortCodeConflictError:
                return False
            return True

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(write, range(workers)))

        assert results.count(True) == 1
        assert len(store) == 1


class TestUserStore:
    def _user(self, email: str, subject_id: str = "u-1") -> UserRecord:
        return UserRecord(subject_id=subject_id, email=email, password_digest="$2b$04$x", tier=Tier.TIER1.value)

    def test_create_and_find_case_insensitive(self) -> None:
        store = InMemoryUserStore()
        user = self._user("Alice@Example.com")

        store.create(user)

        assert store.find_by_email("alice@example.com") == user
        assert store.find_by_email("bob@example.com") is None

    def test_duplicate_email_is_rejected(self) -> None:
        store = InMemoryUserStore()
        store.create(self._user("alice@example.com"))

        with pytest.raises(EmailAlreadyRegisteredError) as exc_info:
            store.create(self._user("ALICE@example.com", subject_id="u-2"))

        assert exc_info.value.code == "email_already_registered"

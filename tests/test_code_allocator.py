"""Tests for short code allocation."""

import random
import string
from unittest.mock import MagicMock

import pytest

from shortener.adapters.storage.base import AbstractMappingStore
from shortener.adapters.storage.in_memory import InMemoryMappingStore
from shortener.core.config import ShortCodeSettings
from shortener.core.errors import AllocationExhaustedError, ShortCodeConflictError
from shortener.models import ShortCodeMapping
from shortener.services.code_allocator import ALPHABET, CodeAllocator


def _conflict(code: str) -> ShortCodeConflictError:
    return ShortCodeConflictError(code="short_code_conflict", message="Short URL already exists")


@pytest.fixture
def store() -> InMemoryMappingStore:
    return InMemoryMappingStore()


@pytest.fixture
def allocator(store) -> CodeAllocator:
    return CodeAllocator(store, rng=random.Random(1234))


class TestCandidates:
    def test_alphabet_is_base62(self) -> None:
        assert len(ALPHABET) == 62
        assert set(ALPHABET) == set(string.ascii_letters + string.digits)

    def test_candidate_has_configured_length_and_alphabet(self, allocator) -> None:
        for _ in range(200):
            candidate = allocator.generate_candidate()
            assert len(candidate) == 6
            assert set(candidate) <= set(ALPHABET)

    def test_from_settings(self, store) -> None:
        allocator = CodeAllocator.from_settings(store, ShortCodeSettings(length=8, max_attempts=3))

        assert allocator.length == 8
        assert allocator.max_attempts == 3
        assert len(allocator.generate_candidate()) == 8

    @pytest.mark.parametrize("kwargs", [{"length": 0}, {"max_attempts": 0}])
    def test_invalid_configuration(self, store, kwargs) -> None:
        with pytest.raises(ValueError):
            CodeAllocator(store, **kwargs)


class TestAllocate:
    def test_returns_code_not_in_store(self, store, allocator) -> None:
        codes = {allocator.allocate() for _ in range(500)}
        assert len(codes) == 500
        assert not any(store.exists(code) for code in codes)

    def test_skips_existing_codes(self, store) -> None:
        # Replaying the same seed makes the first candidate predictable
        first = CodeAllocator(store, rng=random.Random(7)).generate_candidate()
        store.store(ShortCodeMapping(code=first, target_url="https://taken.example", owner_id="u-0"))

        code = CodeAllocator(store, rng=random.Random(7)).allocate()

        assert code != first
        assert not store.exists(code)

    def test_preferred_code_accepted_when_free(self, allocator) -> None:
        assert allocator.allocate("my-link") == "my-link"

    def test_preferred_code_conflict(self, store, allocator) -> None:
        store.store(ShortCodeMapping(code="taken", target_url="https://a.example", owner_id="u-0"))

        with pytest.raises(ShortCodeConflictError) as exc_info:
            allocator.allocate("taken")

        assert exc_info.value.message == "Short URL already exists"
        assert exc_info.value.details == {"short_code": "taken"}

    def test_exhaustion_when_every_code_exists(self) -> None:
        store = MagicMock(spec=AbstractMappingStore)
        store.exists.return_value = True
        allocator = CodeAllocator(store, max_attempts=10)

        for _ in range(1000):
            with pytest.raises(AllocationExhaustedError) as exc_info:
                allocator.allocate()

        assert exc_info.value.code == "allocation_retry_exhausted"
        assert exc_info.value.details == {"attempts": 10}
        assert store.exists.call_count == 10 * 1000

    def test_terminates_within_max_attempts(self) -> None:
        store = MagicMock(spec=AbstractMappingStore)
        store.exists.side_effect = [True, True, False]
        allocator = CodeAllocator(store, max_attempts=3)

        allocator.allocate()

        assert store.exists.call_count == 3


class TestCreateMapping:
    def test_stores_mapping_for_owner(self, store, allocator) -> None:
        mapping = allocator.create_mapping("https://example.com/a", owner_id="u-1")

        assert store.find_by_code(mapping.code) == mapping
        assert mapping.owner_id == "u-1"
        assert mapping.target_url == "https://example.com/a"

    def test_preferred_code_is_stored(self, store, allocator) -> None:
        mapping = allocator.create_mapping("https://example.com", owner_id="u-1", preferred_code="docs")

        assert mapping.code == "docs"
        assert store.exists("docs")

    def test_preferred_code_conflict_leaves_existing_mapping(self, store, allocator) -> None:
        original = allocator.create_mapping("https://one.example", owner_id="u-1", preferred_code="docs")

        with pytest.raises(ShortCodeConflictError):
            allocator.create_mapping("https://two.example", owner_id="u-2", preferred_code="docs")

        assert store.find_by_code("docs") == original
        assert store.find_by_owner("u-2") == []

    def test_write_time_conflict_on_preferred_code(self) -> None:
        store = MagicMock(spec=AbstractMappingStore)
        store.exists.return_value = False
        store.store.side_effect = _conflict("docs")
        allocator = CodeAllocator(store)

        with pytest.raises(ShortCodeConflictError) as exc_info:
            allocator.create_mapping("https://example.com", owner_id="u-1", preferred_code="docs")

        assert exc_info.value.details == {"short_code": "docs"}

    def test_write_time_conflict_is_retried(self) -> None:
        store = MagicMock(spec=AbstractMappingStore)
        store.exists.return_value = False
        store.store.side_effect = [_conflict("x"), _conflict("y"), None]
        allocator = CodeAllocator(store, max_attempts=5)

        mapping = allocator.create_mapping("https://example.com", owner_id="u-1")

        assert store.store.call_count == 3
        assert store.store.call_args.args[0] == mapping

    def test_lookup_and_write_collisions_share_budget(self) -> None:
        store = MagicMock(spec=AbstractMappingStore)
        store.exists.side_effect = [True, False, True, False]
        store.store.side_effect = _conflict("x")
        allocator = CodeAllocator(store, max_attempts=4)

        with pytest.raises(AllocationExhaustedError):
            allocator.create_mapping("https://example.com", owner_id="u-1")

        assert store.exists.call_count == 4
        assert store.store.call_count == 2

    def test_always_colliding_store_raises_exhausted(self) -> None:
        store = MagicMock(spec=AbstractMappingStore)
        store.exists.return_value = True
        allocator = CodeAllocator(store, max_attempts=10)

        with pytest.raises(AllocationExhaustedError):
            allocator.create_mapping("https://example.com", owner_id="u-1")

        store.store.assert_not_called()

    def test_codes_are_unique_across_many_mappings(self, store, allocator) -> None:
        codes = [allocator.create_mapping(f"https://example.com/{i}", owner_id="u-1").code for i in range(1000)]

        assert len(set(codes)) == 1000
        assert len(store) == 1000


class TestReservedCodes:
    def test_reserved_preferred_code_conflicts(self, store) -> None:
        allocator = CodeAllocator(store, reserved_codes={"health", "docs"})

        with pytest.raises(ShortCodeConflictError) as exc_info:
            allocator.create_mapping("https://example.com", owner_id="u-1", preferred_code="health")

        assert exc_info.value.details == {"short_code": "health"}
        assert len(store) == 0

    def test_reserved_random_candidate_counts_as_collision(self, store) -> None:
        first = CodeAllocator(store, rng=random.Random(7)).generate_candidate()
        allocator = CodeAllocator(store, rng=random.Random(7), reserved_codes={first})

        mapping = allocator.create_mapping("https://example.com", owner_id="u-1")

        assert mapping.code != first
        assert not store.exists(first)

    def test_from_settings_passes_reserved_codes(self, store) -> None:
        allocator = CodeAllocator.from_settings(store, ShortCodeSettings(), reserved_codes=["docs"])

        assert allocator.reserved_codes == frozenset({"docs"})
        with pytest.raises(ShortCodeConflictError):
            allocator.allocate("docs")

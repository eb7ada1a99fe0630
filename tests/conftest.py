"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import of ``shortener`` so the
module-level settings object can be built without a .env file.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key-please-change")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable
from unittest.mock import MagicMock

import pytest
import redis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from shortener.adapters.factory import Stores
from shortener.adapters.rate_limit.in_memory import InMemoryQuotaStore
from shortener.adapters.storage.in_memory import InMemoryMappingStore, InMemoryUserStore
from shortener.core.app_factory import create_app
from shortener.core.config import (
    AuthSettings,
    QuotaSettings,
    Settings,
    ShortCodeSettings,
)
from shortener.services.token_codec import TokenCodec

TEST_SECRET = "test-secret-key-please-change"


class FakeClock:
    """Deterministic clock used to test window expiry."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec() -> TokenCodec:
    """Codec sharing the secret of the test app."""
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        auth=AuthSettings(secret_key=TEST_SECRET, bcrypt_rounds=4),
        quota=QuotaSettings(),
        shortcode=ShortCodeSettings(),
    )


@pytest.fixture
def memory_stores(clock: FakeClock) -> Stores:
    return Stores(
        mappings=InMemoryMappingStore(),
        users=InMemoryUserStore(),
        quotas=InMemoryQuotaStore(clock=clock),
    )


@pytest.fixture
def make_app(test_settings: Settings, memory_stores: Stores) -> Callable[..., FastAPI]:
    """Build an isolated app; keyword arguments replace settings sections."""

    def _make(**overrides) -> FastAPI:
        cfg = test_settings.model_copy(update=overrides) if overrides else test_settings
        return create_app(cfg, stores=memory_stores, configure_logs=False)

    return _make


@pytest.fixture
def app(make_app) -> FastAPI:
    return make_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def redis_client() -> MagicMock:
    """Mock a Redis client; scripts registered on it are MagicMocks too."""
    client = MagicMock(spec=redis.Redis)
    client.connection_pool = MagicMock(
        spec=redis.ConnectionPool,
        connection_kwargs={"host": "redis.test", "port": 6379, "db": 0},
    )
    client.register_script.side_effect = lambda *_args, **_kwargs: MagicMock()
    return client

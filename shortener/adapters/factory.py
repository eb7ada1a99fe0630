"""Factory for the configured storage backend."""

from __future__ import annotations

from dataclasses import dataclass

from shortener.adapters.rate_limit.base import AbstractQuotaStore
from shortener.adapters.rate_limit.in_memory import InMemoryQuotaStore
from shortener.adapters.rate_limit.redis_store import RedisQuotaStore
from shortener.adapters.redis_support import create_redis_client
from shortener.adapters.storage.base import AbstractMappingStore, AbstractUserStore
from shortener.adapters.storage.in_memory import InMemoryMappingStore, InMemoryUserStore
from shortener.adapters.storage.redis_store import RedisMappingStore, RedisUserStore
from shortener.core.config import StoreSettings
from shortener.core.errors import ValidationAppError


@dataclass
class Stores:
    """The three stores the service needs, sharing one backend."""

    mappings: AbstractMappingStore
    users: AbstractUserStore
    quotas: AbstractQuotaStore


def create_stores(store_settings: StoreSettings) -> Stores:
    """Instantiate stores for the configured backend.

    Args:
        store_settings: Resolved store settings.

    Returns:
        Stores: Mapping, user and quota stores.

    Raises:
        ValidationAppError: If the backend name is not supported.
    """
    backend = store_settings.backend.lower()

    if backend == "memory":
        return Stores(
            mappings=InMemoryMappingStore(),
            users=InMemoryUserStore(),
            quotas=InMemoryQuotaStore(),
        )

    if backend == "redis":
        client = create_redis_client(store_settings.redis_url)
        prefix = store_settings.key_prefix
        return Stores(
            mappings=RedisMappingStore(client, prefix=prefix),
            users=RedisUserStore(client, prefix=prefix),
            quotas=RedisQuotaStore(client, prefix=prefix),
        )

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: memory, redis",
    )

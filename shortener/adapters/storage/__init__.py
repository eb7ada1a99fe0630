"""Persistence adapters for short code mappings and accounts."""

from shortener.adapters.storage.base import AbstractMappingStore, AbstractUserStore
from shortener.adapters.storage.in_memory import InMemoryMappingStore, InMemoryUserStore
from shortener.adapters.storage.redis_store import RedisMappingStore, RedisUserStore

__all__ = [
    "AbstractMappingStore",
    "AbstractUserStore",
    "InMemoryMappingStore",
    "InMemoryUserStore",
    "RedisMappingStore",
    "RedisUserStore",
]

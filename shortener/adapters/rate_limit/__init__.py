"""Quota store adapters.

The quota tracker talks to an ``AbstractQuotaStore``; the in-memory store
serves a single process and the Redis store shares counters across workers.
"""

from shortener.adapters.rate_limit.base import AbstractQuotaStore, QuotaDecision
from shortener.adapters.rate_limit.in_memory import InMemoryQuotaStore
from shortener.adapters.rate_limit.redis_store import RedisQuotaStore

__all__ = ["AbstractQuotaStore", "InMemoryQuotaStore", "QuotaDecision", "RedisQuotaStore"]

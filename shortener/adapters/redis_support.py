"""Shared Redis plumbing for the quota and storage adapters.

Provides:
    - RedisKeySchema: namespaced key builder
    - handle_redis_errors: decorator translating redis connectivity errors
      into StoreUnavailableError
    - create_redis_client: client factory from a connection URL
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import redis

from shortener.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class RedisKeySchema:
    """Provide standardized Redis keys for the shortener's records.

    An optional prefix namespaces all generated keys, e.g. "shortener:prod".
    """

    def __init__(self, prefix: str | None = None) -> None:
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    def link_key(self, code: str) -> str:
        return self._key(f"links:{code}")

    def owner_links_key(self, subject_id: str) -> str:
        return self._key(f"users:{subject_id}:links")

    def user_by_email_key(self, email: str) -> str:
        return self._key(f"users:email:{email.lower()}")

    def quota_key(self, subject_id: str) -> str:
        return self._key(f"quota:{subject_id}")


def handle_redis_errors(method: F) -> F:
    """Wrap Redis-interacting adapter methods to surface connectivity failures.

    Raises:
        StoreUnavailableError: When the wrapped call raises a redis
            ConnectionError or TimeoutError.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError) as exc:
            info = self.redis.connection_pool.connection_kwargs
            location = f"{info.get('host')}:{info.get('port')}/{info.get('db')}"
            logger.error(
                "store.unavailable",
                extra={
                    "operation": method.__qualname__,
                    "redis_location": location,
                    "error_type": type(exc).__name__,
                },
            )
            raise StoreUnavailableError(
                code="store_unavailable",
                message=f"Can't connect to Redis at {location}.",
            ) from exc

    return wrapper  # type: ignore[return-value]


def create_redis_client(url: str) -> redis.Redis:
    """Build a Redis client returning ``str`` values."""

    return redis.Redis.from_url(url, decode_responses=True)

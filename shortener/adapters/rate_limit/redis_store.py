"""Redis-backed fixed-window quota store.

The check-and-increment runs as a single Lua script, so it is atomic on the
Redis server for every API worker sharing the instance. The key's expiry is
set only when the first request of a window creates it, which anchors the
window at that request; Redis expiring the key is the window reset.
"""

from __future__ import annotations

import math
import time
from typing import Callable

import redis

from shortener.adapters.rate_limit.base import AbstractQuotaStore, QuotaDecision
from shortener.adapters.redis_support import RedisKeySchema, handle_redis_errors

# KEYS[1] = quota key, ARGV[1] = limit, ARGV[2] = window in milliseconds
# Returns {admitted (0/1), count, pttl_ms}
INCREMENT_IF_BELOW_LUA = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
if current >= tonumber(ARGV[1]) then
    return {0, current, redis.call('PTTL', KEYS[1])}
end
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('PEXPIRE', KEYS[1], ARGV[2])
end
return {1, count, redis.call('PTTL', KEYS[1])}
"""


class RedisQuotaStore(AbstractQuotaStore):
    """Quota store sharing counters across processes through Redis.

    Attributes:
        redis (redis.Redis): Client used to run the counting script.
        keys (RedisKeySchema): Key schema helper for namespaced keys.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        prefix: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.redis = client
        self._clock = clock
        self.keys = RedisKeySchema(prefix)
        self._script = client.register_script(INCREMENT_IF_BELOW_LUA)

    @handle_redis_errors
    def increment_if_below(self, key: str, *, limit: int, window_seconds: int) -> QuotaDecision:
        if not key:
            raise ValueError("key must be a non-empty string")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        now_seconds = self._clock()

        admitted, count, pttl_ms = self._script(
            keys=[self.keys.quota_key(key)],
            args=[limit, window_seconds * 1000],
        )
        admitted = bool(int(admitted))
        count = int(count)
        # PTTL is negative when the key vanished between commands; treat as a full window
        ttl_seconds = int(pttl_ms) / 1000 if int(pttl_ms) > 0 else float(window_seconds)
        reset_at = int(math.ceil(now_seconds + ttl_seconds))

        if admitted:
            return QuotaDecision(
                admitted=True,
                limit=limit,
                remaining=max(0, limit - count),
                reset_at=reset_at,
                retry_after_seconds=None,
            )
        return QuotaDecision(
            admitted=False,
            limit=limit,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=max(1, int(math.ceil(ttl_seconds))),
        )

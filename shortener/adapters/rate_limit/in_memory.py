"""In-memory fixed-window quota store.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Per-key locking: each subject's window has its own lock, so concurrent
  requests from different subjects never contend with each other.
- Lazy expiry: a window is replaced when a request arrives after it expired.
- Sweeping: at most once per window length, the request that crosses the
  sweep deadline runs ``purge_expired``, so memory is bounded by the subjects
  active within roughly the last two windows.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from shortener.adapters.rate_limit.base import AbstractQuotaStore, QuotaDecision

logger = logging.getLogger(__name__)


@dataclass
class _WindowState:
    window_start: float | None = None
    count: int = 0
    retired: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class InMemoryQuotaStore(AbstractQuotaStore):
    """Quota store keeping one fixed window per key in a dict.

    Entries are created with ``dict.setdefault`` (atomic on the builtin dict)
    and mutated only while holding the entry's own lock. A retired entry
    (removed by ``purge_expired``) is never mutated; callers that raced with
    the sweep look the key up again.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._windows: dict[str, _WindowState] = {}
        self._sweep_lock = threading.Lock()
        self._next_sweep_at: float | None = None

    def _entry_for(self, key: str) -> _WindowState:
        entry = self._windows.get(key)
        if entry is None:
            entry = self._windows.setdefault(key, _WindowState())
        return entry

    @staticmethod
    def _is_expired(state: _WindowState, now: float, window_seconds: int) -> bool:
        return state.window_start is None or now >= state.window_start + window_seconds

    def increment_if_below(self, key: str, *, limit: int, window_seconds: int) -> QuotaDecision:
        """Count one request for ``key`` unless its current window is full.

        Raises:
            ValueError: If key is empty or limit/window_seconds are invalid.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._maybe_sweep(window_seconds)

        while True:
            entry = self._entry_for(key)
            with entry.lock:
                if entry.retired:
                    continue

                now = self._clock()
                if self._is_expired(entry, now, window_seconds):
                    entry.window_start = now
                    entry.count = 0

                reset_at = entry.window_start + window_seconds

                if entry.count < limit:
                    entry.count += 1
                    return QuotaDecision(
                        admitted=True,
                        limit=limit,
                        remaining=limit - entry.count,
                        reset_at=int(math.ceil(reset_at)),
                        retry_after_seconds=None,
                    )

                return QuotaDecision(
                    admitted=False,
                    limit=limit,
                    remaining=0,
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
                )

    def _maybe_sweep(self, window_seconds: int) -> None:
        now = self._clock()
        if self._next_sweep_at is None:
            self._next_sweep_at = now + window_seconds
            return
        if now < self._next_sweep_at or not self._sweep_lock.acquire(blocking=False):
            return
        try:
            self._next_sweep_at = now + window_seconds
            self.purge_expired(window_seconds=window_seconds)
        finally:
            self._sweep_lock.release()

    def purge_expired(self, *, window_seconds: int) -> int:
        """Drop every window that has expired.

        Args:
            window_seconds: Window length used when the windows were opened.

        Returns:
            Number of windows removed.
        """
        removed = 0
        now = self._clock()
        for key, entry in list(self._windows.items()):
            with entry.lock:
                if entry.retired or not self._is_expired(entry, now, window_seconds):
                    continue
                entry.retired = True
                if self._windows.get(key) is entry:
                    del self._windows[key]
                removed += 1

        if removed:
            logger.debug("quota.purged", extra={"removed": removed, "active": len(self._windows)})
        return removed

    def window_count(self, key: str) -> int:
        """Return the count of the key's current window (0 when none exists)."""
        entry = self._windows.get(key)
        return entry.count if entry is not None and not entry.retired else 0

    def __len__(self) -> int:
        return len(self._windows)

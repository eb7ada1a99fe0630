"""Quota store interfaces.

The quota tracker depends on this abstraction (not the concrete implementation)
so the counters can live in process memory or in a shared Redis instance
without changing the admission pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class QuotaDecision:
    """Result of a quota admission check.

    Attributes:
        admitted: Whether the request may proceed.
        limit: Max requests per window for the caller's tier.
        remaining: Remaining requests in the current window (0 when rejected).
        reset_at: UNIX epoch seconds when the current window expires
            (0 when no window exists, e.g. for a zero-quota tier).
        retry_after_seconds: Suggested wait time in seconds when rejected.
    """

    admitted: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractQuotaStore(ABC):
    """Interface for per-key fixed-window counters."""

    @abstractmethod
    def increment_if_below(self, key: str, *, limit: int, window_seconds: int) -> QuotaDecision:
        """Atomically count one request for ``key`` unless the window is full.

        The window is anchored at the first counted request and expires
        ``window_seconds`` later; the next request after expiry opens a fresh
        window. Implementations must make check-and-increment atomic per key
        without serializing unrelated keys.

        Args:
            key: Unique identifier of the counted subject.
            limit: Maximum number of counted requests per window (>= 1).
            window_seconds: Window length in seconds (>= 1).

        Returns:
            QuotaDecision describing whether the request was counted.
        """
        raise NotImplementedError

"""Per-identity request quotas with tier-dependent ceilings.

Each subject gets a strict fixed window (24 hours by default) that opens with
its first admitted request. Within a window at most ``TierLimit[tier]``
requests are admitted; tiers without a positive limit are always rejected.
"""

from __future__ import annotations

import logging
from typing import Mapping

from shortener.adapters.rate_limit.base import AbstractQuotaStore, QuotaDecision
from shortener.core.config import DEFAULT_TIER_LIMITS, QuotaSettings
from shortener.core.logging import hash_identifier
from shortener.models import Tier

logger = logging.getLogger(__name__)


class QuotaTracker:
    """Decide request admission against per-tier quotas.

    Attributes:
        window_seconds: Window length in seconds.
    """

    def __init__(
        self,
        store: AbstractQuotaStore,
        *,
        tier_limits: Mapping[str, int] | None = None,
        window_seconds: int = 24 * 60 * 60,
    ) -> None:
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        self._store = store
        self._tier_limits = dict(DEFAULT_TIER_LIMITS if tier_limits is None else tier_limits)
        self.window_seconds = window_seconds

    @classmethod
    def from_settings(cls, store: AbstractQuotaStore, quota_settings: QuotaSettings) -> "QuotaTracker":
        return cls(
            store,
            tier_limits=quota_settings.tier_limits,
            window_seconds=quota_settings.window_seconds,
        )

    def limit_for(self, tier: Tier | str) -> int:
        """Return the per-window ceiling for ``tier`` (0 for unknown tiers)."""
        name = tier.value if isinstance(tier, Tier) else tier
        return max(0, self._tier_limits.get(name, 0))

    def admit(self, subject_id: str, tier: Tier | str) -> QuotaDecision:
        """Count one request for ``subject_id`` if its quota allows it.

        Args:
            subject_id: Verified subject identifier.
            tier: Tier from the verified credential.

        Returns:
            QuotaDecision; ``admitted`` is False when the window is full or the
            tier has no quota.
        """
        limit = self.limit_for(tier)
        tier_name = tier.value if isinstance(tier, Tier) else tier

        if limit == 0:
            logger.warning(
                "quota.no_quota_for_tier",
                extra={"subject_hash": hash_identifier(subject_id), "tier": tier_name},
            )
            return QuotaDecision(
                admitted=False,
                limit=0,
                remaining=0,
                reset_at=0,
                retry_after_seconds=None,
            )

        decision = self._store.increment_if_below(
            subject_id,
            limit=limit,
            window_seconds=self.window_seconds,
        )

        if decision.admitted:
            logger.debug(
                "quota.admitted",
                extra={
                    "subject_hash": hash_identifier(subject_id),
                    "tier": tier_name,
                    "limit": decision.limit,
                    "remaining": decision.remaining,
                },
            )
        else:
            logger.warning(
                "quota.exceeded",
                extra={
                    "subject_hash": hash_identifier(subject_id),
                    "tier": tier_name,
                    "limit": decision.limit,
                    "reset_at": decision.reset_at,
                    "retry_after_s": decision.retry_after_seconds,
                },
            )
        return decision

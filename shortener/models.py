"""Domain models shared by services, stores and routes.

Example:
    >>> identity = Identity(subject_id="u-1", tier=Tier.parse("Tier1"))
    >>> identity.tier
    <Tier.TIER1: 'Tier1'>
    >>> Tier.parse("Guest")
    <Tier.UNKNOWN: 'Unknown'>
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Tier(str, Enum):
    """Subscription class controlling the quota ceiling."""

    TIER1 = "Tier1"
    TIER2 = "Tier2"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> "Tier":
        """Map a raw tier string to a known tier, or UNKNOWN for anything else."""
        if value in (cls.TIER1.value, cls.TIER2.value):
            return cls(value)
        return cls.UNKNOWN


@dataclass(frozen=True)
class Identity:
    """Verified caller identity recovered from a credential.

    Attributes:
        subject_id (str):
            Opaque identifier of the account.
        tier (Tier):
            Subscription tier claimed by the credential. The raw claim is kept
            in ``raw_tier`` so diagnostics show what was actually signed.
    """

    subject_id: str
    tier: Tier
    raw_tier: str | None = None


@dataclass(frozen=True)
class ShortCodeMapping:
    """Immutable mapping from a short code to its target URL.

    Attributes:
        code (str):
            Unique short identifier used in the redirect path.
        target_url (str):
            The original long URL the code redirects to.
        owner_id (str):
            Subject id of the account that created the mapping.
    """

    code: str
    target_url: str
    owner_id: str


@dataclass(frozen=True)
class UserRecord:
    """Identity store row for a registered account."""

    subject_id: str
    email: str
    password_digest: str
    tier: str

"""Request admission: credential → identity → quota.

Per-request state machine (terminal outcomes only):

    Start
      ├─ no credential ............ NoCredential     (401)
      ├─ TokenCodec.verify fails .. Unauthenticated  (401)
      └─ Identity
           ├─ quota exhausted ..... RateLimited      (429)
           └─ Admitted ............ handler

The credential slot is read before any cryptographic work, and the quota is
only consulted for a verified identity. Codec failures are collapsed into one
outward error; the specific reason is logged for diagnostics only.
"""

from __future__ import annotations

import logging

from shortener.adapters.rate_limit.base import QuotaDecision
from shortener.core.errors import AuthenticationAppError, CredentialError, QuotaExceededAppError
from shortener.core.logging import bind_subject
from shortener.models import Identity
from shortener.services.quota_tracker import QuotaTracker
from shortener.services.token_codec import TokenCodec

logger = logging.getLogger(__name__)


class AdmissionPipeline:
    """Compose the token codec and quota tracker for tier-gated routes."""

    def __init__(self, codec: TokenCodec, tracker: QuotaTracker) -> None:
        self.codec = codec
        self.tracker = tracker

    def authenticate(self, credential: str | None) -> Identity:
        """Recover the caller's identity from the presented credential.

        Raises:
            AuthenticationAppError: ``missing_credential`` when nothing was
                presented, ``invalid_credential`` for any verification failure.
        """
        if not credential:
            logger.warning("auth.missing_credential", extra={"credential_present": False})
            raise AuthenticationAppError(
                code="missing_credential",
                message="Unauthorized - Token not provided",
            )

        try:
            identity = self.codec.verify(credential)
        except CredentialError as exc:
            logger.warning(
                "auth.invalid_credential",
                extra={"reason": exc.code, "credential_length": len(credential)},
            )
            raise AuthenticationAppError(
                code="invalid_credential",
                message="Unauthorized - Invalid token",
            ) from exc

        bind_subject(identity.subject_id)
        logger.info("auth.success", extra={"tier": identity.tier.value})
        return identity

    def admit(self, identity: Identity) -> QuotaDecision:
        """Count the request against the identity's quota.

        Raises:
            QuotaExceededAppError: The quota for the current window is used up
                or the tier has none.
        """
        decision = self.tracker.admit(identity.subject_id, identity.tier)
        if decision.admitted:
            return decision

        details = {"limit": decision.limit, "remaining": decision.remaining}
        if decision.retry_after_seconds is not None:
            details["retry_after"] = decision.retry_after_seconds
            details["reset_at"] = decision.reset_at
        raise QuotaExceededAppError(
            code="limit_exceeded",
            message="Too many requests",
            details=details,
        )

    def run(self, credential: str | None) -> tuple[Identity, QuotaDecision]:
        """Authenticate then admit; the full gate for tier-gated routes."""
        identity = self.authenticate(credential)
        return identity, self.admit(identity)


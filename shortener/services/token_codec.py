"""Signed bearer credentials binding a subject id and tier.

Credentials are HS256 JWTs carrying ``sub``, ``tier`` and ``iat`` claims (plus
``exp`` when a lifetime is configured). Verification is a pure function of the
credential and the process-wide secret; nothing is looked up server-side.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import jwt

from shortener.core.config import AuthSettings
from shortener.core.errors import (
    BadSignatureError,
    ExpiredCredentialError,
    MalformedCredentialError,
)
from shortener.models import Identity, Tier

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "tier", "iat"]


class TokenCodec:
    """Issue and verify signed identity credentials.

    The secret is fixed for the lifetime of the instance; key rotation is not
    supported.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        algorithm: str = "HS256",
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must be a non-empty string")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @classmethod
    def from_settings(cls, auth_settings: AuthSettings) -> "TokenCodec":
        return cls(
            auth_settings.secret_key,
            algorithm=auth_settings.algorithm,
            ttl_seconds=auth_settings.token_ttl_seconds,
        )

    def issue(self, subject_id: str, tier: Tier | str) -> str:
        """Sign a credential for ``subject_id`` with the given tier.

        Args:
            subject_id: Opaque account identifier.
            tier: Tier to embed; stored as its literal string value.

        Returns:
            The encoded credential.
        """
        issued_at = int(self._clock())
        payload: dict[str, object] = {
            "sub": subject_id,
            "tier": tier.value if isinstance(tier, Tier) else tier,
            "iat": issued_at,
        }
        if self._ttl_seconds is not None:
            payload["exp"] = issued_at + self._ttl_seconds
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, credential: str) -> Identity:
        """Verify a credential and recover the identity it binds.

        Args:
            credential: Encoded credential as presented by the client.

        Returns:
            Identity with the subject id and parsed tier.

        Raises:
            MalformedCredentialError: The credential cannot be decoded or a
                required claim is missing or has the wrong type.
            BadSignatureError: The signature does not match the payload.
            ExpiredCredentialError: The ``exp`` claim has passed.
        """
        try:
            claims = jwt.decode(
                credential,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.InvalidSignatureError as exc:
            raise BadSignatureError(
                code="bad_signature",
                message="Credential signature does not match",
            ) from exc
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredCredentialError(
                code="expired_credential",
                message="Credential has expired",
            ) from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedCredentialError(
                code="malformed_credential",
                message="Credential could not be decoded",
            ) from exc

        subject_id = claims["sub"]
        raw_tier = claims["tier"]
        if not isinstance(subject_id, str) or not subject_id or not isinstance(raw_tier, str):
            raise MalformedCredentialError(
                code="malformed_credential",
                message="Credential claims have unexpected types",
            )

        return Identity(subject_id=subject_id, tier=Tier.parse(raw_tier), raw_tier=raw_tier)

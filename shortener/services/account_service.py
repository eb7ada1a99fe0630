"""Registration and login.

Registration stores a bcrypt digest and the tier exactly as supplied; login
checks the password and issues a signed credential carrying the stored tier.
"""

from __future__ import annotations

import logging
import uuid

from shortener.adapters.storage.base import AbstractUserStore
from shortener.core.errors import AuthenticationAppError
from shortener.core.logging import hash_identifier
from shortener.models import UserRecord
from shortener.services.passwords import PasswordHasher
from shortener.services.token_codec import TokenCodec

logger = logging.getLogger(__name__)


class AccountService:
    """Create accounts and exchange passwords for credentials."""

    def __init__(self, users: AbstractUserStore, hasher: PasswordHasher, codec: TokenCodec) -> None:
        self._users = users
        self._hasher = hasher
        self._codec = codec

    def register(self, email: str, password: str, tier: str) -> UserRecord:
        """Create a new account.

        Raises:
            EmailAlreadyRegisteredError: The email is already registered.
        """
        user = UserRecord(
            subject_id=uuid.uuid4().hex,
            email=email,
            password_digest=self._hasher.hash(password),
            tier=tier,
        )
        self._users.create(user)
        logger.info(
            "account.registered",
            extra={"subject_hash": hash_identifier(user.subject_id), "tier": tier},
        )
        return user

    def login(self, email: str, password: str) -> str:
        """Return a fresh credential for valid email/password pairs.

        Raises:
            AuthenticationAppError: Unknown email or wrong password; both
                produce the same error.
        """
        user = self._users.find_by_email(email)
        if user is None or not self._hasher.verify(password, user.password_digest):
            logger.warning(
                "account.login_failed",
                extra={
                    "email_hash": hash_identifier(email.lower()),
                    "reason": "unknown_email" if user is None else "bad_password",
                },
            )
            raise AuthenticationAppError(code="invalid_credentials", message="Invalid credentials")

        logger.info("account.login", extra={"subject_hash": hash_identifier(user.subject_id)})
        return self._codec.issue(user.subject_id, user.tier)

"""bcrypt password digests for the identity store."""

from __future__ import annotations

import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases reject longer input
_BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Hash and verify passwords with a fixed bcrypt cost factor."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode()[:_BCRYPT_MAX_BYTES]

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(password), salt).decode()

    def verify(self, password: str, digest: str) -> bool:
        """Return True when ``password`` matches ``digest``; malformed digests never match."""
        try:
            return bcrypt.checkpw(self._encode(password), digest.encode())
        except ValueError as exc:
            logger.warning("password.verify_error", extra={"error_type": type(exc).__name__})
            return False

"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.

Hierarchy:
    AppError
    ├── ValidationAppError          400
    ├── AuthenticationAppError      401
    │   └── CredentialError         (diagnostic, never returned as-is)
    │       ├── MalformedCredentialError
    │       ├── BadSignatureError
    │       └── ExpiredCredentialError
    ├── QuotaExceededAppError       429
    ├── ConflictAppError            409
    │   ├── ShortCodeConflictError
    │   └── EmailAlreadyRegisteredError
    ├── NotFoundAppError            404
    ├── AllocationExhaustedError    500
    └── StoreUnavailableError       500
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    limit: int
    remaining: int
    retry_after: float
    reset_at: int
    attempts: int
    short_code: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when a request cannot be tied to a verified identity."""


class CredentialError(AuthenticationAppError):
    """Raised by the token codec when a credential fails verification.

    The concrete subclass is for diagnostics only; callers collapse every
    variant into a single unauthenticated response.
    """


class MalformedCredentialError(CredentialError):
    """The credential cannot be decoded or lacks required claims."""


class BadSignatureError(CredentialError):
    """The credential signature does not match its payload."""


class ExpiredCredentialError(CredentialError):
    """The credential carries an expiry that has passed."""


class QuotaExceededAppError(AppError):
    """Raised when an identity has used up its quota for the current window."""


class ConflictAppError(AppError):
    """Raised when a create request collides with an existing resource."""


class ShortCodeConflictError(ConflictAppError):
    """A mapping with the requested short code already exists."""


class EmailAlreadyRegisteredError(ConflictAppError):
    """An account with the requested email already exists."""


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""


class AllocationExhaustedError(AppError):
    """Raised when random short code generation hits its retry ceiling."""


class StoreUnavailableError(AppError):
    """Raised when the backing store cannot be reached."""

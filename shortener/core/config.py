"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Settings are read once at import time; components receive the sections they
need explicitly (e.g. ``TokenCodec.from_settings(settings.auth)``) instead of
reading the environment on their own.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


DEFAULT_TIER_LIMITS: dict[str, int] = {
    "Tier1": 1000,
    "Tier2": 100,
}


class AuthSettings(BaseSettings):
    """Credential signing and password hashing configuration."""

    secret_key: str = Field(
        ...,
        description="Process-wide HMAC secret used to sign bearer credentials",
        min_length=1,
    )
    algorithm: str = Field(
        "HS256",
        description="JWT signing algorithm",
    )
    cookie_name: str = Field(
        "token",
        description="Name of the cookie carrying the bearer credential",
    )
    cookie_secure: bool = Field(
        False,
        description="Set the Secure flag on the credential cookie",
    )
    token_ttl_seconds: int | None = Field(
        None,
        description="Optional credential lifetime; no expiry is enforced when unset",
        ge=1,
    )
    bcrypt_rounds: int = Field(
        10,
        description="bcrypt cost factor for password digests",
        ge=4,
        le=31,
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class QuotaSettings(BaseSettings):
    """Per-tier request quota configuration."""

    window_seconds: int = Field(
        24 * 60 * 60,
        description="Length of the fixed quota window, anchored at the first request",
        ge=1,
    )
    tier_limits: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_TIER_LIMITS),
        description="Maximum admitted requests per window, keyed by tier name",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="QUOTA_",
        case_sensitive=False,
    )


class ShortCodeSettings(BaseSettings):
    """Short code generation configuration."""

    length: int = Field(
        6,
        description="Number of characters in a generated short code",
        ge=1,
    )
    max_attempts: int = Field(
        10,
        description="Collision retries before allocation is reported as exhausted",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="SHORTCODE_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Persistence backend configuration."""

    backend: str = Field(
        "memory",
        description="Storage backend: memory or redis",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL (used when backend=redis)",
    )
    key_prefix: str | None = Field(
        "shortener",
        description="Namespace prefix for every Redis key",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: str = Field(
        "json",
        description="Log format: json or plain",
    )
    output: str = Field(
        "stdout",
        description="Log destination: stdout or file",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to receive and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class ServerSettings(BaseSettings):
    """Uvicorn binding configuration."""

    host: str = Field("127.0.0.1", description="Interface to bind")
    port: int = Field(3000, description="Port to listen on", ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        case_sensitive=False,
    )


def _build_auth_settings() -> "AuthSettings":
    """Build auth settings from environment.

    Pydantic Settings (v2) populates required fields from environment
    variables; static type checkers still see them as constructor arguments.
    """

    return AuthSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.
    """

    app_env: str = APP_ENV
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    shortcode: ShortCodeSettings = Field(default_factory=ShortCodeSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()

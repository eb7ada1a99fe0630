"""Structured JSON logging for the shortener.

Every log line is one JSON object. Messages are short event names
(``auth.success``, ``quota.exceeded``) and the interesting data travels in
``extra``. Two pieces of per-request context are held in contextvars and
stamped onto every record emitted while the request runs:

- ``request_id``: correlation id set by the request-id middleware
- ``subject_hash``: truncated SHA-256 of the authenticated subject id

Credentials must never be logged. Structured fields whose key names a secret
are replaced wholesale, and string values are scrubbed for anything shaped
like a signed credential or an email address.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from shortener.core.config import LogSettings, settings

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
_subject_hash_var: ContextVar[str | None] = ContextVar("subject_hash", default=None)

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "credential",
        "secret",
        "secret_key",
        "auth_secret_key",
        "password",
        "password_digest",
        "cookie",
        "set-cookie",
        "email",
    }
)

REDACTED = "[REDACTED]"

# Three base64url segments, the first starting with the encoded '{"'
_CREDENTIAL_PATTERN = re.compile(r"eyJ[\w-]*\.[\w-]+\.[\w-]+")
_EMAIL_PATTERN = re.compile(r"[^@\s\"']+@[^@\s\"']+\.[A-Za-z]{2,}")

# LogRecord attributes that are not user-supplied extras
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def hash_identifier(value: str) -> str:
    """Return a short, stable digest for logging identifiers without exposing them."""

    return hashlib.sha256(value.encode()).hexdigest()[:16]


def set_request_id(request_id: str | None) -> None:
    """Store the current request id in a context variable.

    Args:
        request_id: Correlation identifier to associate with subsequent logs.
    """

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    """Forget the request id and the bound subject."""

    _request_id_var.set(None)
    _subject_hash_var.set(None)


def bind_subject(subject_id: str) -> None:
    """Attach the hashed subject id to every subsequent log line of the request."""

    _subject_hash_var.set(hash_identifier(subject_id))


def get_subject_hash() -> str | None:
    return _subject_hash_var.get()


def scrub_text(text: str) -> str:
    """Mask credential-shaped substrings and email addresses in free text."""

    text = _CREDENTIAL_PATTERN.sub(REDACTED, text)
    return _EMAIL_PATTERN.sub(REDACTED, text)


def redact(value: Any, sensitive_keys: frozenset[str] = SENSITIVE_KEYS_DEFAULT) -> Any:
    """Return ``value`` with sensitive mapping keys and strings masked.

    Mappings, lists and tuples are walked recursively; other objects are
    returned unchanged.
    """

    if isinstance(value, str):
        return scrub_text(value)
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in sensitive_keys else redact(item, sensitive_keys)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(redact(item, sensitive_keys) for item in value)
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """Collect the caller-supplied ``extra`` fields of a record."""

    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class RequestContextFilter(logging.Filter):
    """Stamp request_id and subject_hash from context onto the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        if getattr(record, "subject_hash", None) is None:
            record.subject_hash = get_subject_hash()
        return True


class SensitiveDataFilter(logging.Filter):
    """Mask sensitive extras in place so every handler sees redacted data."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in record_extras(record).items():
            masked = REDACTED if key.lower() in self.sensitive_keys else redact(value, self.sensitive_keys)
            setattr(record, key, masked)
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON object.

    Fields with a ``None`` value are dropped, so lines emitted outside a
    request carry no ``request_id`` or ``subject_hash``.
    """

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.sensitive_keys = frozenset(k.lower() for k in (sensitive_keys or SENSITIVE_KEYS_DEFAULT))
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": scrub_text(record.getMessage()),
            "request_id": get_request_id(),
        }

        for key, value in record_extras(record).items():
            if key.lower() in self.sensitive_keys:
                payload[key] = REDACTED
            else:
                payload[key] = redact(value, self.sensitive_keys)

        if record.exc_info:
            payload["exc_info"] = scrub_text(self.formatException(record.exc_info))

        payload = {key: value for key, value in payload.items() if value is not None}
        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Return a stdout handler, or a (rotating) file handler when output=file."""

    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or "logs/shortener.log")
    path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes == 0:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the JSON handler on the root logger.

    Args:
        log_settings: Logging section of the settings; defaults to the
            process-wide settings.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestContextFilter())
    handler.addFilter(SensitiveDataFilter())

    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # request.completed replaces uvicorn's access log
    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("uvicorn").propagate = False

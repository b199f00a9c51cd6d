"""Logging setup: JSON lines, request correlation and scrubbing of personal data.

Every handler installed by ``configure_logging`` passes records through
``RequestIdFilter`` and ``SensitiveDataFilter`` before formatting.

Scrubbing policy for structured ``extra`` fields (nested mappings included):
- ``REDACTED_KEYS`` (credentials, raw headers) become ``"[REDACTED]"``
- ``HASHED_KEYS`` (client ids, email addresses) become ``hash_for_log(value)``
  so log lines about one client or one address can still be correlated

Call sites log identifiers under their plain names (``client_ip``, ``key``,
``email``) and never hash them themselves.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping

from app.core.config import LogSettings, settings

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

REDACTED = "[REDACTED]"

REDACTED_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "apikey",
        "password",
        "smtp_password",
        "service_key",
        "supabase_service_key",
        "cookie",
        "set-cookie",
        "user_agent",
    }
)

HASHED_KEYS: frozenset[str] = frozenset(
    {
        "client_ip",
        "ip",
        "key",
        "email",
        "recipient",
        "to",
    }
)

# Attributes every LogRecord carries; anything else came in through ``extra``.
# taskName only exists on 3.12+.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName", "request_id"}


def set_request_id(request_id: str | None) -> None:
    """Store the current request id in a context variable."""

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def hash_for_log(value: str) -> str:
    """Short, stable digest for correlating identifiers without logging them.

    Examples:
        >>> len(hash_for_log("203.0.113.7"))
        16
    """

    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]


def scrub(key: str, value: Any) -> Any:
    """Apply the scrubbing policy to one structured field.

    Args:
        key: Field name (case-insensitive).
        value: Field value; mappings and sequences are scrubbed recursively.

    Returns:
        The value safe to emit.
    """

    name = key.lower()
    if name in REDACTED_KEYS:
        return REDACTED
    if name in HASHED_KEYS and isinstance(value, str):
        return hash_for_log(value)
    if isinstance(value, Mapping):
        return {k: scrub(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(scrub(key, v) for v in value)
    return value


def record_extras(record: LogRecord) -> dict[str, Any]:
    """Fields attached to a record through ``extra=``."""

    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub ``extra`` fields on the record in place, once, before formatting."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "_scrubbed", False):
            return True
        for key, value in record_extras(record).items():
            setattr(record, key, scrub(key, value))
        record._scrubbed = True
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; expects records already scrubbed."""

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            payload["request_id"] = request_id

        payload.update(record_extras(record))

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    """Stdout handler, or a (rotating) file handler when LOG_OUTPUT=file."""

    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/report-download.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install the scrubbing handler on the root logger.

    Args:
        log_settings: Optional log settings; defaults to ``settings.log``.
    """

    cfg = log_settings or settings.log

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())

    if cfg.format.lower() == "plain":
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler.setFormatter(JsonFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, cfg.level.upper(), logging.INFO))

    # uvicorn installs its own handlers
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False

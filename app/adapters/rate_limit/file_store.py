"""JSON file rate limit store.

The whole mapping is rewritten on every save, so the file grows with the
number of distinct clients ever seen. Entries are never pruned.

File format::

    {
      "203.0.113.7": {"count": 2, "reset_at": 1760832000.0}
    }
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from app.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitEntry
from app.core.errors import RateLimitStoreError

logger = logging.getLogger(__name__)


class JsonFileRateLimitStore(AbstractRateLimitStore):
    """Persist rate limit counters as a single JSON document."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, RateLimitEntry]:
        """Read and parse the counters file.

        A missing file means no client has been seen yet and loads as empty.

        Raises:
            RateLimitStoreError: If the file is unreadable or does not contain
                a mapping of valid entries.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise RateLimitStoreError(
                code="rate_limit_store_unreadable",
                message=f"Could not read rate limit store: {exc.strerror or exc}",
                details={"path": str(self._path)},
            ) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RateLimitStoreError(
                code="rate_limit_store_corrupt",
                message=f"Rate limit store is not valid JSON: {exc.msg}",
                details={"path": str(self._path)},
            ) from exc

        if not isinstance(data, dict):
            raise RateLimitStoreError(
                code="rate_limit_store_corrupt",
                message="Rate limit store must contain a JSON object",
                details={"path": str(self._path)},
            )

        return {client_id: _parse_entry(client_id, value, self._path) for client_id, value in data.items()}

    def save(self, entries: dict[str, RateLimitEntry]) -> None:
        """Write all entries, replacing the file atomically.

        Raises:
            RateLimitStoreError: If the directory or file cannot be written.
        """
        payload = {
            client_id: {"count": entry.count, "reset_at": entry.reset_at}
            for client_id, entry in entries.items()
        }

        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except OSError as exc:
            raise RateLimitStoreError(
                code="rate_limit_store_unwritable",
                message=f"Could not write rate limit store: {exc.strerror or exc}",
                details={"path": str(self._path)},
            ) from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        logger.debug(
            "rate_limit.store_saved",
            extra={"path": str(self._path), "entries": len(entries)},
        )


def _parse_entry(client_id: str, value: Any, path: Path) -> RateLimitEntry:
    try:
        count = int(value["count"])
        reset_at = float(value["reset_at"])
    except (KeyError, TypeError, ValueError) as exc:
        raise RateLimitStoreError(
            code="rate_limit_store_corrupt",
            message=f"Invalid rate limit entry for key {client_id!r}",
            details={"path": str(path)},
        ) from exc

    if count < 0:
        raise RateLimitStoreError(
            code="rate_limit_store_corrupt",
            message=f"Negative count for key {client_id!r}",
            details={"path": str(path)},
        )
    return RateLimitEntry(client_id=client_id, count=count, reset_at=reset_at)

"""In-memory rate limit store.

Notes:
- Per-process only: nothing survives a restart.
- Entries are copied on load/save so callers cannot mutate stored state
  without going through ``save``, matching the file-backed store.
"""

from __future__ import annotations

import threading
from dataclasses import replace

from app.adapters.rate_limit.base import AbstractRateLimitStore, RateLimitEntry
from app.core.errors import RateLimitStoreError


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Dict-backed store, mainly for tests and single-process deployments.

    Attributes:
        fail_reads: When True, ``load`` raises RateLimitStoreError.
        fail_writes: When True, ``save`` raises RateLimitStoreError.
    """

    def __init__(self, entries: dict[str, RateLimitEntry] | None = None) -> None:
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = _copy_entries(entries or {})
        self.fail_reads = False
        self.fail_writes = False

    def load(self) -> dict[str, RateLimitEntry]:
        if self.fail_reads:
            raise RateLimitStoreError(
                code="rate_limit_store_unreadable",
                message="In-memory rate limit store is configured to fail reads",
            )
        with self._lock:
            return _copy_entries(self._entries)

    def save(self, entries: dict[str, RateLimitEntry]) -> None:
        if self.fail_writes:
            raise RateLimitStoreError(
                code="rate_limit_store_unwritable",
                message="In-memory rate limit store is configured to fail writes",
            )
        with self._lock:
            self._entries = _copy_entries(entries)

    def get(self, client_id: str) -> RateLimitEntry | None:
        """Return a copy of the stored entry for ``client_id``, if any."""
        with self._lock:
            entry = self._entries.get(client_id)
            return replace(entry) if entry else None


def _copy_entries(entries: dict[str, RateLimitEntry]) -> dict[str, RateLimitEntry]:
    return {key: replace(entry) for key, entry in entries.items()}

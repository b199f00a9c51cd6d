"""Store-backed fixed-window rate limiter.

Notes:
- Each client's window starts with its first action and lasts
  ``window_seconds``; it is not aligned to wall-clock boundaries.
- Thread-safe within one process: load/modify/save runs under a lock.
  Several worker processes sharing one file store can still interleave.
- Store failures are logged and treated as "no prior history" (fail-open)
  unless ``fail_open`` is disabled.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitEntry,
    RateLimitResult,
)
from app.core.errors import RateLimitStoreError

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key, persisted in a store.

    Example:
        >>> limiter = FixedWindowRateLimiter(
        ...     store=InMemoryRateLimitStore(), limit=3, window_seconds=900
        ... )
        >>> limiter.consume("203.0.113.7").allowed
        True
    """

    def __init__(
        self,
        *,
        store: AbstractRateLimitStore,
        limit: int,
        window_seconds: int,
        fail_open: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            store: Persistence for per-client counters.
            limit: Maximum number of allowed actions per window.
            window_seconds: Size of the fixed window in seconds.
            fail_open: Treat an unreadable store as empty instead of denying.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._store = store
        self._limit = limit
        self._window_seconds = window_seconds
        self._fail_open = fail_open
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def _load_entries(self, key: str, operation: str) -> dict[str, RateLimitEntry] | None:
        """Load the store, returning None when it cannot be read."""
        try:
            return self._store.load()
        except RateLimitStoreError as exc:
            logger.warning(
                "rate_limit.store_unavailable",
                extra={
                    "operation": operation,
                    "key": key,
                    "error_code": exc.code,
                    "fail_open": self._fail_open,
                },
            )
            return None

    def _save_entries(self, key: str, entries: dict[str, RateLimitEntry]) -> None:
        try:
            self._store.save(entries)
        except RateLimitStoreError as exc:
            logger.error(
                "rate_limit.store_write_failed",
                extra={
                    "key": key,
                    "error_code": exc.code,
                    "entries": len(entries),
                },
            )

    def _get_or_reset_entry(
        self, entries: dict[str, RateLimitEntry], key: str, now: float
    ) -> RateLimitEntry:
        """Get the entry for key, defaulting or restarting its window.

        The returned entry is not added to ``entries``; callers that persist
        it must store it themselves.

        Args:
            entries: Loaded client mapping.
            key: Rate limit key (e.g., client IP).
            now: Current UNIX time in seconds.

        Returns:
            The current window entry for this key.
        """
        entry = entries.get(key)
        if entry is None:
            return RateLimitEntry(client_id=key, count=0, reset_at=now + self._window_seconds)
        if now > entry.reset_at:
            entry.count = 0
            entry.reset_at = now + self._window_seconds
        return entry

    def _build_allowed_result(self, *, remaining: int, reset_at: float) -> RateLimitResult:
        """Build a RateLimitResult for an allowed request."""
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, remaining: int, reset_at: float) -> RateLimitResult:
        """Build a RateLimitResult for a blocked request."""
        retry_after = max(0, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=remaining,
            reset_at=int(math.ceil(reset_at)),
            retry_after_seconds=retry_after,
        )

    @staticmethod
    def _validate_key(key: str) -> None:
        if not key:
            raise ValueError("key must be a non-empty string")

    def is_allowed(self, key: str) -> bool:
        """Return whether ``key`` may perform another action now.

        Reads the store but never writes it.

        Raises:
            ValueError: If key is empty.
        """
        self._validate_key(key)

        with self._lock:
            now = self._clock()
            entries = self._load_entries(key, "is_allowed")
            if entries is None:
                return self._fail_open

            entry = self._get_or_reset_entry(entries, key, now)
            return entry.count < self._limit

    def record_action(self, key: str) -> None:
        """Increment the counter for ``key`` and persist the whole store.

        When the store cannot be read, a fresh store holding only this key
        is written in its place.

        Raises:
            ValueError: If key is empty.
        """
        self._validate_key(key)

        with self._lock:
            now = self._clock()
            entries = self._load_entries(key, "record_action")
            if entries is None:
                entries = {}

            entry = self._get_or_reset_entry(entries, key, now)
            entry.count += 1
            entries[key] = entry
            self._save_entries(key, entries)

    def consume(self, key: str) -> RateLimitResult:
        """Consume one action from the budget of ``key``.

        Checks the current window usage and, if allowed, records the action
        before releasing the lock, so concurrent requests in this process
        cannot both take the last slot.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        self._validate_key(key)

        with self._lock:
            now = self._clock()
            entries = self._load_entries(key, "consume")
            if entries is None:
                if not self._fail_open:
                    return self._build_blocked_result(
                        now=now, remaining=0, reset_at=now + self._window_seconds
                    )
                entries = {}

            entry = self._get_or_reset_entry(entries, key, now)
            if entry.count >= self._limit:
                return self._build_blocked_result(now=now, remaining=0, reset_at=entry.reset_at)

            entry.count += 1
            entries[key] = entry
            self._save_entries(key, entries)

            remaining = max(0, self._limit - entry.count)
            return self._build_allowed_result(remaining=remaining, reset_at=entry.reset_at)

"""Rate limiter interfaces.

The API should depend on these abstractions (not the concrete implementations)
so the counter storage can be swapped (e.g., JSON file today, a database or
Redis later) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RateLimitEntry:
    """Download counter for a single client within its current window.

    Attributes:
        client_id: Client identifier (usually the client IP address).
        count: Actions recorded in the current window.
        reset_at: UNIX epoch seconds after which the window restarts.
    """

    client_id: str
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check/consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimitStore(ABC):
    """Persistence for the whole client_id -> RateLimitEntry mapping."""

    @abstractmethod
    def load(self) -> dict[str, RateLimitEntry]:
        """Load every stored entry.

        Returns:
            Mapping of client id to its entry.

        Raises:
            RateLimitStoreError: If the store is missing, unreadable or corrupt.
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, entries: dict[str, RateLimitEntry]) -> None:
        """Replace the stored mapping with ``entries``.

        Raises:
            RateLimitStoreError: If the store cannot be written.
        """
        raise NotImplementedError


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def is_allowed(self, key: str) -> bool:
        """Return whether a new action is currently permitted for ``key``.

        Does not change any stored state.
        """
        raise NotImplementedError

    @abstractmethod
    def record_action(self, key: str) -> None:
        """Record that ``key`` performed an action in its current window."""
        raise NotImplementedError

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Check and record an action for ``key`` as a single step.

        Args:
            key: Unique identifier (e.g., client IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

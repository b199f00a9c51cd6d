"""Rate limiting wiring for the HTTP layer.

This module builds the process-wide limiter from settings and derives the
client identifier used as its key.

Rate limiting strategy:
- Fixed window per client IP (3 downloads per 15 minutes by default).
- Counters persisted to a JSON file shared by all requests of the process.
- Client IP taken from proxy headers when present, else the socket peer.
"""

from __future__ import annotations

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.file_store import JsonFileRateLimitStore
from app.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitExceededError

UNKNOWN_CLIENT = "unknown"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, str, bool] | None = None


def get_rate_limiter() -> AbstractRateLimiter | None:
    """Return a process-wide rate limiter instance, or None when disabled.

    The instance is cached in-module so its lock is shared across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter | None: Configured limiter instance.
    """

    global _limiter, _limiter_config

    if not settings.app.rate_limit_enabled:
        return None

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_store_path,
        settings.app.rate_limit_fail_open,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = FixedWindowRateLimiter(
            store=JsonFileRateLimitStore(settings.app.rate_limit_store_path),
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            fail_open=settings.app.rate_limit_fail_open,
        )
        _limiter_config = config

    return _limiter


def get_client_ip(request: Request) -> str:
    """Resolve the client identifier used as the rate limit key.

    Precedence: first X-Forwarded-For entry, then X-Real-IP, then the socket
    peer address, then "unknown".

    Examples:
        >>> # X-Forwarded-For: "198.51.100.4, 10.0.0.1" -> "198.51.100.4"
        >>> # X-Real-IP: " 198.51.100.9 "              -> "198.51.100.9"
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


def build_rate_limit_headers(exc: RateLimitExceededError) -> dict[str, str]:
    """Build Retry-After and X-RateLimit-* headers for a throttled response."""

    if not settings.app.rate_limit_include_headers or not exc.details:
        return {}

    details = exc.details
    return {
        "Retry-After": str(details.get("retry_after", 0)),
        "X-RateLimit-Limit": str(details.get("limit", settings.app.rate_limit_requests)),
        "X-RateLimit-Remaining": str(details.get("remaining", 0)),
        "X-RateLimit-Reset": str(details.get("reset_at", 0)),
    }

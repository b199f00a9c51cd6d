"""Rate limiting adapters.

This package provides a small abstraction layer so the limiter logic can run
against a JSON file today and another shared store later without changing
the API layer.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitEntry,
    RateLimitResult,
)
from app.adapters.rate_limit.file_store import JsonFileRateLimitStore
from app.adapters.rate_limit.fixed_window import FixedWindowRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryRateLimitStore

__all__ = [
    "AbstractRateLimiter",
    "AbstractRateLimitStore",
    "FixedWindowRateLimiter",
    "InMemoryRateLimitStore",
    "JsonFileRateLimitStore",
    "RateLimitEntry",
    "RateLimitResult",
]

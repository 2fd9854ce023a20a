"""Rate limiting adapters.

This package provides a small abstraction layer so the HTTP layer depends on
``AbstractRateLimiter`` while counters live in the shared key-value store.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.kv_fixed_window import KeyValueFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "KeyValueFixedWindowRateLimiter",
    "RateLimitResult",
]

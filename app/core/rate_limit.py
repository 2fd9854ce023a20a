"""Rate limiting dependencies for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Shared state: counters live in the key-value backend on ``app.state``, so
  every API process enforces the same budget.
- Per route group: each dependency carries its own window and maximum.

Rate limiting strategy:
- Fixed window per client IP, keyed ``ratelimit:<ip>``.
- If the client address is unavailable, all such callers share ``unknown``.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from fastapi import Request

from app.adapters.rate_limit.base import RateLimitResult
from app.adapters.rate_limit.kv_fixed_window import (
    KeyValueFixedWindowRateLimiter,
    validate_limits,
)
from app.core.config import settings
from app.core.dependencies import get_kv_store
from app.core.errors import RateLimitAppError
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

TOO_MANY_REQUESTS_MESSAGE = "Too many requests, please try again later"
UNKNOWN_CLIENT = "unknown"

RateLimitDependency = Callable[[Request], Awaitable[None]]


def get_client_identifier(request: Request) -> str:
    """Return the caller's network address, or a shared sentinel."""
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def _build_headers(result: RateLimitResult) -> dict[str, str] | None:
    if not settings.rate_limit.include_headers:
        return None
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }


def create_rate_limiter(
    *,
    window_ms: int,
    max_requests: int,
    scope: str | None = None,
    fail_open: bool | None = None,
) -> RateLimitDependency:
    """Build a FastAPI dependency enforcing a fixed-window limit.

    Args:
        window_ms: Window length in milliseconds.
        max_requests: Maximum requests per caller within the window.
        scope: Optional counter namespace for this route group.
        fail_open: Override ``settings.rate_limit.fail_open`` for this group.

    Returns:
        Async dependency raising RateLimitAppError when the caller is over budget.

    Raises:
        ValueError: If the limits are invalid.
    """
    validate_limits(window_ms=window_ms, max_requests=max_requests)

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.rate_limit.enabled:
            return

        limiter = KeyValueFixedWindowRateLimiter(
            get_kv_store(request),
            window_ms=window_ms,
            max_requests=max_requests,
            scope=scope,
            fail_open=settings.rate_limit.fail_open if fail_open is None else fail_open,
        )
        identifier = get_client_identifier(request)
        result = await limiter.consume(identifier)

        log_extra = {
            "scope": scope or "default",
            "client_hash": hash_identifier(identifier),
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": limiter.window_seconds,
            "degraded": result.degraded,
        }

        if result.allowed:
            logger.debug("rate_limit.allowed", extra=log_extra)
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={**log_extra, "retry_after_s": result.retry_after_seconds},
        )
        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message=TOO_MANY_REQUESTS_MESSAGE,
            details={
                "limit": result.limit,
                "retry_after": result.retry_after_seconds or 0,
            },
            headers=_build_headers(result),
        )

    return enforce_rate_limit


# Pre-configured limiters
api_rate_limiter = create_rate_limiter(
    window_ms=settings.rate_limit.api_window_ms,
    max_requests=settings.rate_limit.api_max,
)

strict_rate_limiter = create_rate_limiter(
    window_ms=settings.rate_limit.strict_window_ms,
    max_requests=settings.rate_limit.strict_max,
    scope="strict",
)

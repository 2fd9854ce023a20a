"""Fixed-window rate limiter backed by the shared key-value store.

Notes:
- Shared across processes: the counter lives in the key-value backend.
- Read-then-write: the count is read with GET and written back with SET, so
  concurrent requests from one caller may over- or under-count slightly.
- Every allowed request re-applies the full window as the key's expiry. The
  counter therefore resets only after a full window with no allowed requests.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from app.adapters.kv.base import BACKEND_ERRORS, AbstractKeyValueStore
from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.core.logging import hash_identifier

logger = logging.getLogger(__name__)

KEY_PREFIX = "ratelimit"


def validate_limits(*, window_ms: int, max_requests: int) -> None:
    """Reject configurations that cannot be enforced.

    Raises:
        ValueError: If max_requests < 1 or the window floors to zero seconds.
    """
    if max_requests < 1:
        raise ValueError("max_requests must be >= 1")
    if window_ms < 1000:
        raise ValueError("window_ms must be >= 1000")


class KeyValueFixedWindowRateLimiter(AbstractRateLimiter):
    """Counts requests per identifier under ``ratelimit:<identifier>``.

    State per identifier cycles NoRecord -> Counting -> Blocked and back to
    NoRecord once the backend expires the counter key.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        window_ms: int,
        max_requests: int,
        scope: str | None = None,
        fail_open: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Key-value backend holding the counters.
            window_ms: Window length in milliseconds (floored to whole seconds).
            max_requests: Maximum allowed requests per window.
            scope: Optional namespace so route groups keep separate counters.
            fail_open: Allow requests when the backend fails.
            clock: Time source returning UNIX seconds, used for reset metadata.

        Raises:
            ValueError: If window_ms or max_requests are invalid.
        """
        validate_limits(window_ms=window_ms, max_requests=max_requests)

        self._store = store
        self._window_seconds = window_ms // 1000
        self._max = max_requests
        self._scope = scope
        self._fail_open = fail_open
        self._clock = clock

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @property
    def max_requests(self) -> int:
        return self._max

    @property
    def fail_open(self) -> bool:
        return self._fail_open

    def key_for(self, identifier: str) -> str:
        if self._scope:
            return f"{KEY_PREFIX}:{self._scope}:{identifier}"
        return f"{KEY_PREFIX}:{identifier}"

    def _result(self, *, allowed: bool, count: int, degraded: bool = False) -> RateLimitResult:
        reset_at = int(self._clock()) + self._window_seconds
        return RateLimitResult(
            allowed=allowed,
            limit=self._max,
            remaining=max(0, self._max - count),
            reset_at=reset_at,
            # The key's TTL is not read back, so a full window is the upper bound
            retry_after_seconds=None if allowed else self._window_seconds,
            degraded=degraded,
        )

    async def consume(self, identifier: str) -> RateLimitResult:
        """Count one request for identifier and decide whether to allow it.

        Args:
            identifier: Caller identity (e.g., client IP address).

        Returns:
            RateLimitResult with the decision. Backend failures produce an
            allowed result when fail-open, a blocked one otherwise.
        """
        key = self.key_for(identifier or "unknown")

        try:
            current_raw = await self._store.get(key)
            if current_raw is None:
                # First request in a new window
                await self._store.set(key, "1", ex=self._window_seconds)
                return self._result(allowed=True, count=1)

            count = int(current_raw) + 1
            if count > self._max:
                return self._result(allowed=False, count=self._max)

            await self._store.set(key, str(count), ex=self._window_seconds)
            return self._result(allowed=True, count=count)
        except BACKEND_ERRORS + (ValueError,) as exc:
            logger.error(
                "rate_limit.backend_error",
                extra={
                    "key_hash": hash_identifier(key),
                    "error_type": type(exc).__name__,
                    "fail_open": self._fail_open,
                },
            )
            if self._fail_open:
                return self._result(allowed=True, count=0, degraded=True)
            return self._result(allowed=False, count=self._max, degraded=True)

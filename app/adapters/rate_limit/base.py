"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
counting strategy can change without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds by which the window will have reset.
        retry_after_seconds: Suggested wait time in seconds when blocked.
        degraded: True when the decision was made without the backend.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None
    degraded: bool = False


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def consume(self, identifier: str) -> RateLimitResult:
        """Count one request for identifier.

        Args:
            identifier: Caller identity (e.g., client IP address).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

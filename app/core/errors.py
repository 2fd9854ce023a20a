"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    limit: int
    upstream: str
    operation: str
    cache_key: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class UpstreamAppError(AppError):
    """Raised when an upstream data source (RPC node, price API) fails."""


class KeyValueStoreError(AppError):
    """Raised by key-value backends when a command cannot be completed.

    The cache and rate limiting layers convert this into a soft failure; it
    should never reach an HTTP client.
    """


@dataclass
class RateLimitAppError(AppError):
    """Raised when a caller exceeds its request budget for the current window.

    Attributes:
        headers: Optional response headers (Retry-After, X-RateLimit-*).
    """

    headers: dict[str, str] | None = None

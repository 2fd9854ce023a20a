"""Key-value store interface.

Mirrors the subset of Redis commands the cache and rate limiter rely on:
GET, SET [EX], DEL, EXISTS and KEYS. Values are opaque text blobs.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from app.core.errors import KeyValueStoreError

# Socket-level failures can surface from a driver without being wrapped
BACKEND_ERRORS: tuple[type[Exception], ...] = (
    KeyValueStoreError,
    OSError,
    asyncio.TimeoutError,
)


class AbstractKeyValueStore(ABC):
    """Async key-value backend with explicit connection lifecycle.

    Implementations raise ``KeyValueStoreError`` for backend failures. Callers
    that must never fail on the backend catch ``BACKEND_ERRORS``.
    """

    async def connect(self) -> None:
        """Open connections to the backend (no-op by default)."""

    async def close(self) -> None:
        """Release backend connections (no-op by default)."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under key, or None if missing/expired."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        """Store value under key.

        Args:
            key: Key to write.
            value: Serialized value.
            ex: Expiry in seconds. None stores the value without expiry.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""
        raise NotImplementedError

    @abstractmethod
    async def exists(self, key: str) -> int:
        """Return 1 if key exists, else 0."""
        raise NotImplementedError

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """Return keys matching a glob-style pattern."""
        raise NotImplementedError

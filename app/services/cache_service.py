"""Cache-aside store on top of the shared key-value backend.

Route handlers use this to memoize expensive reads (contract calls, price
API requests) for a bounded time. The service keeps no state of its own:
every entry lives in the backend, so any number of API processes can share
it.

Failure policy:
- Backend errors and undecodable values degrade to a cache miss.
- Write failures return False instead of raising.
- ``get_or_set`` swallows fetch errors and returns None, so callers must read
  None as "unknown right now", never as zero.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, TypeVar

from app.adapters.kv.base import BACKEND_ERRORS, AbstractKeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300


class CacheService:
    """JSON cache-aside facade over an injected key-value store.

    Attributes:
        store: Key-value backend holding the entries.
        default_ttl_seconds: TTL used by ``get_or_set`` when none is given.
    """

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        default_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> None:
        self.store = store
        self.default_ttl_seconds = default_ttl_seconds

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"CacheService(store={self.store!r}, default_ttl_seconds={self.default_ttl_seconds})"

    async def get(self, key: str) -> Any | None:
        """Return the cached value for key, or None if missing/expired/unreadable.

        Args:
            key: Cache key.

        Returns:
            The deserialized value or None.
        """
        try:
            raw = await self.store.get(key)
        except BACKEND_ERRORS as exc:
            logger.error(
                "cache.backend_error",
                extra={"operation": "get", "cache_key": key, "error_type": type(exc).__name__},
            )
            return None

        if raw is None:
            logger.debug("cache.miss", extra={"cache_key": key})
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(
                "cache.decode_error",
                extra={"cache_key": key, "size": len(raw)},
            )
            return None

        logger.debug("cache.hit", extra={"cache_key": key})
        return value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        """Serialize and store value, optionally with a TTL.

        Args:
            key: Cache key.
            value: JSON-serializable value.
            ttl_seconds: Expiry in seconds; falsy stores without expiry.

        Returns:
            True if the backend accepted the write.
        """
        try:
            serialized = json.dumps(value)
        except (TypeError, ValueError) as exc:
            logger.error(
                "cache.encode_error",
                extra={"cache_key": key, "error_type": type(exc).__name__},
            )
            return False

        try:
            await self.store.set(key, serialized, ex=ttl_seconds or None)
        except BACKEND_ERRORS as exc:
            logger.error(
                "cache.backend_error",
                extra={"operation": "set", "cache_key": key, "error_type": type(exc).__name__},
            )
            return False

        logger.debug("cache.set", extra={"cache_key": key, "ttl_s": ttl_seconds})
        return True

    async def delete(self, key: str) -> bool:
        """Remove key. Returns False only when the backend fails."""
        try:
            await self.store.delete(key)
        except BACKEND_ERRORS as exc:
            logger.error(
                "cache.backend_error",
                extra={"operation": "delete", "cache_key": key, "error_type": type(exc).__name__},
            )
            return False
        return True

    async def exists(self, key: str) -> bool:
        try:
            return await self.store.exists(key) == 1
        except BACKEND_ERRORS as exc:
            logger.error(
                "cache.backend_error",
                extra={"operation": "exists", "cache_key": key, "error_type": type(exc).__name__},
            )
            return False

    async def delete_by_prefix(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (e.g. ``balance:*``).

        Args:
            pattern: Glob-style key pattern.

        Returns:
            Number of keys removed; 0 on no match or backend failure.
        """
        try:
            keys = await self.store.keys(pattern)
            if not keys:
                return 0
            removed = await self.store.delete(*keys)
        except BACKEND_ERRORS as exc:
            logger.error(
                "cache.backend_error",
                extra={"operation": "delete_by_prefix", "pattern": pattern, "error_type": type(exc).__name__},
            )
            return 0

        logger.info("cache.invalidated", extra={"pattern": pattern, "removed": removed})
        return removed

    async def get_or_set(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[T]],
        ttl_seconds: int | None = None,
    ) -> T | None:
        """Return the cached value or compute, store and return a fresh one.

        Concurrent misses on the same key each call ``fetch_fn`` and the last
        write wins; only use this for side-effect-free reads.

        Args:
            key: Cache key.
            fetch_fn: Zero-argument coroutine function producing the value.
            ttl_seconds: Expiry for a freshly computed value; defaults to
                ``default_ttl_seconds``.

        Returns:
            Cached or freshly fetched value, or None if the fetch failed.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached

        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds

        try:
            value = await fetch_fn()
        except Exception as exc:
            logger.error(
                "cache.fetch_failed",
                extra={
                    "cache_key": key,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return None

        await self.set(key, value, ttl)
        return value

"""Redis-backed key-value store using redis-py's asyncio client."""

from __future__ import annotations

import asyncio
import logging

from redis import asyncio as redis_asyncio
from redis.exceptions import RedisError

from app.adapters.kv.base import AbstractKeyValueStore
from app.core.errors import KeyValueStoreError

logger = logging.getLogger(__name__)

DRIVER_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class RedisKeyValueStore(AbstractKeyValueStore):
    """Shared key-value store for all API processes.

    The client is created lazily on ``connect()`` (or on first use) and
    released on ``close()``; there is no module-level connection.
    """

    def __init__(
        self,
        url: str,
        *,
        socket_timeout_seconds: float | None = 5.0,
        client: redis_asyncio.Redis | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            url: Redis connection URL (e.g. redis://localhost:6379/0).
            socket_timeout_seconds: Timeout applied to each command.
            client: Pre-built client, mainly for tests.
        """
        self._url = url
        self._socket_timeout = socket_timeout_seconds
        self._client = client

    def _get_client(self) -> redis_asyncio.Redis:
        if self._client is None:
            self._client = redis_asyncio.from_url(
                self._url,
                decode_responses=True,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_timeout,
            )
        return self._client

    def _wrap_error(self, operation: str, exc: Exception) -> KeyValueStoreError:
        return KeyValueStoreError(
            code="kv_backend_error",
            message=f"Redis {operation} failed: {type(exc).__name__}",
            details={"operation": operation},
        )

    async def connect(self) -> None:
        client = self._get_client()
        try:
            await client.ping()
            logger.info("kv.connected", extra={"backend": "redis"})
        except DRIVER_ERRORS as exc:
            # Startup continues; every command will fail soft until Redis is back
            logger.error(
                "kv.connect_failed",
                extra={"backend": "redis", "error_type": type(exc).__name__},
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("kv.closed", extra={"backend": "redis"})

    async def ping(self) -> bool:
        try:
            return bool(await self._get_client().ping())
        except DRIVER_ERRORS as exc:
            raise self._wrap_error("ping", exc) from exc

    async def get(self, key: str) -> str | None:
        try:
            return await self._get_client().get(key)
        except DRIVER_ERRORS as exc:
            raise self._wrap_error("get", exc) from exc

    async def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        try:
            await self._get_client().set(key, value, ex=ex)
        except DRIVER_ERRORS as exc:
            raise self._wrap_error("set", exc) from exc

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._get_client().delete(*keys))
        except DRIVER_ERRORS as exc:
            raise self._wrap_error("delete", exc) from exc

    async def exists(self, key: str) -> int:
        try:
            return int(await self._get_client().exists(key))
        except DRIVER_ERRORS as exc:
            raise self._wrap_error("exists", exc) from exc

    async def keys(self, pattern: str) -> list[str]:
        try:
            return list(await self._get_client().keys(pattern))
        except DRIVER_ERRORS as exc:
            raise self._wrap_error("keys", exc) from exc

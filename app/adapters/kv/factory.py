"""Factory pattern for creating key-value store instances."""

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.in_memory import InMemoryKeyValueStore
from app.adapters.kv.redis_store import RedisKeyValueStore
from app.core.config import RedisSettings, settings
from app.core.errors import ValidationAppError


def create_kv_store(redis_settings: RedisSettings | None = None) -> AbstractKeyValueStore:
    """Instantiate the key-value backend selected by configuration.

    Args:
        redis_settings: Optional override; defaults to global settings.

    Returns:
        AbstractKeyValueStore: Unconnected store instance.

    Raises:
        ValidationAppError: If the configured backend is unknown.
    """
    cfg = redis_settings or settings.redis
    backend = cfg.backend.lower()

    if backend == "redis":
        return RedisKeyValueStore(
            cfg.url,
            socket_timeout_seconds=cfg.socket_timeout_seconds,
        )

    if backend == "memory":
        return InMemoryKeyValueStore()

    raise ValidationAppError(
        code="kv_unknown_backend",
        message=f"Unknown key-value backend: '{backend}'. Supported backends: redis, memory",
    )

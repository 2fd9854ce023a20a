"""Key-value backend adapters.

The cache-aside store and the rate limiter only talk to this abstraction, so
Redis can be swapped for the in-memory implementation in tests or single
process deployments.
"""

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.factory import create_kv_store
from app.adapters.kv.in_memory import InMemoryKeyValueStore
from app.adapters.kv.redis_store import RedisKeyValueStore

__all__ = [
    "AbstractKeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_kv_store",
]

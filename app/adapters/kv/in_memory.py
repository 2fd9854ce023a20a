"""In-memory key-value store.

Notes:
- Per-process only: running multiple workers gives each its own keyspace.
- Expiry is lazy: an entry past its deadline is dropped on the next access.
- The clock is injectable so tests can advance time deterministically.
"""

from __future__ import annotations

import fnmatch
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.kv.base import AbstractKeyValueStore
from app.core.errors import KeyValueStoreError


@dataclass
class _Entry:
    value: str
    expires_at: float | None


class InMemoryKeyValueStore(AbstractKeyValueStore):
    """Dict-backed store honouring per-key TTLs like Redis ``SET .. EX``."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, _Entry] = {}

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryKeyValueStore(size={len(self._data)})"

    def _live_entry_locked(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry_locked(key)
            return entry.value if entry else None

    async def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        if ex is not None and ex <= 0:
            # Redis rejects non-positive expiries with an error
            raise KeyValueStoreError(
                code="kv_invalid_expire",
                message="invalid expire time in set",
                details={"operation": "set"},
            )

        expires_at = self._clock() + ex if ex is not None else None
        with self._lock:
            self._data[key] = _Entry(value=value, expires_at=expires_at)

    async def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._live_entry_locked(key) is not None:
                    del self._data[key]
                    removed += 1
        return removed

    async def exists(self, key: str) -> int:
        with self._lock:
            return 1 if self._live_entry_locked(key) is not None else 0

    async def keys(self, pattern: str) -> list[str]:
        with self._lock:
            candidates = list(self._data)
            return [
                key
                for key in candidates
                if fnmatch.fnmatchcase(key, pattern) and self._live_entry_locked(key)
            ]

    def ttl(self, key: str) -> float | None:
        """Remaining lifetime of key in seconds (None when missing or persistent)."""
        with self._lock:
            entry = self._live_entry_locked(key)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - self._clock()

    def clear(self) -> None:
        """Remove every key."""
        with self._lock:
            self._data.clear()

"""Unit tests for the cache-aside CacheService."""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from app.services.cache_service import DEFAULT_TTL_SECONDS, CacheService


@pytest.mark.asyncio
async def test_set_and_get_round_trips_json_values(cache: CacheService) -> None:
    value = {"musdBalance": "1.00", "tags": ["a", "b"], "n": 3}

    assert await cache.set("k", value) is True
    assert await cache.get("k") == value


@pytest.mark.asyncio
async def test_get_missing_returns_none(cache: CacheService) -> None:
    assert await cache.get("missing") is None


@pytest.mark.asyncio
async def test_set_with_ttl_expires(cache: CacheService, clock) -> None:
    await cache.set("k", 1, 10)

    clock.advance(11)

    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_set_without_ttl_never_expires(cache: CacheService, store, clock) -> None:
    await cache.set("k", 1)
    clock.advance(1_000_000)

    assert await cache.get("k") == 1
    assert store.ttl("k") is None


@pytest.mark.asyncio
async def test_unserializable_value_is_not_stored(cache: CacheService) -> None:
    assert await cache.set("k", {"bad": object()}) is False
    assert await cache.exists("k") is False


@pytest.mark.asyncio
async def test_malformed_stored_value_reads_as_miss(cache: CacheService, store, caplog) -> None:
    await store.set("k", "{not json")

    with caplog.at_level(logging.WARNING, logger="app.services.cache_service"):
        assert await cache.get("k") is None

    assert any(r.getMessage() == "cache.decode_error" for r in caplog.records)


@pytest.mark.asyncio
async def test_delete_and_exists(cache: CacheService) -> None:
    await cache.set("k", "v")
    assert await cache.exists("k") is True

    assert await cache.delete("k") is True
    assert await cache.exists("k") is False
    # Deleting a missing key is still a successful command
    assert await cache.delete("k") is True


@pytest.mark.asyncio
async def test_delete_by_prefix_removes_only_matching_keys(cache: CacheService) -> None:
    await cache.set("balance:0xaa", {})
    await cache.set("balance:0xbb", {})
    await cache.set("btc:price", 50000)

    assert await cache.delete_by_prefix("balance:*") == 2
    assert await cache.get("btc:price") == 50000
    assert await cache.delete_by_prefix("balance:*") == 0


@pytest.mark.asyncio
async def test_get_or_set_hit_skips_fetch(cache: CacheService) -> None:
    fetch = AsyncMock(return_value={"v": 1})

    first = await cache.get_or_set("k", fetch, 60)
    second = await cache.get_or_set("k", fetch, 60)

    assert first == second == {"v": 1}
    fetch.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_or_set_btc_price_scenario(cache: CacheService, clock) -> None:
    fetch_price = AsyncMock(side_effect=[50000, 51000])

    assert await cache.get_or_set("btc:price", fetch_price, 60) == 50000
    clock.advance(30)
    assert await cache.get_or_set("btc:price", fetch_price, 60) == 50000

    assert fetch_price.await_count == 1


@pytest.mark.asyncio
async def test_get_or_set_recomputes_after_expiry(cache: CacheService, clock) -> None:
    await cache.get_or_set("k", AsyncMock(return_value="stale"), 60)
    clock.advance(60)

    fresh = AsyncMock(return_value="fresh")
    assert await cache.get_or_set("k", fresh, 60) == "fresh"
    fresh.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_or_set_uses_default_ttl(cache: CacheService, store) -> None:
    await cache.get_or_set("k", AsyncMock(return_value=1))

    assert store.ttl("k") == pytest.approx(DEFAULT_TTL_SECONDS)


@pytest.mark.asyncio
async def test_get_or_set_fetch_error_returns_none_and_caches_nothing(cache: CacheService) -> None:
    failing = AsyncMock(side_effect=RuntimeError("rpc down"))

    assert await cache.get_or_set("k", failing, 60) is None
    assert await cache.exists("k") is False


@pytest.mark.asyncio
async def test_get_or_set_none_result_is_refetched(cache: CacheService) -> None:
    fetch = AsyncMock(return_value=None)

    assert await cache.get_or_set("k", fetch, 60) is None
    assert await cache.get_or_set("k", fetch, 60) is None
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_backend_failure_degrades_to_fresh_fetch(failing_store) -> None:
    cache = CacheService(failing_store)
    fetch = AsyncMock(return_value=42)

    assert await cache.get_or_set("k", fetch, 60) == 42
    assert await cache.get_or_set("k", fetch, 60) == 42
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_backend_failure_never_raises(failing_store) -> None:
    cache = CacheService(failing_store)

    assert await cache.get("k") is None
    assert await cache.set("k", 1, 10) is False
    assert await cache.delete("k") is False
    assert await cache.exists("k") is False
    assert await cache.delete_by_prefix("*") == 0


@pytest.mark.asyncio
async def test_unwrapped_socket_error_degrades_to_fresh_fetch(store, monkeypatch) -> None:
    monkeypatch.setattr(store, "get", AsyncMock(side_effect=OSError("socket")))
    monkeypatch.setattr(store, "set", AsyncMock(side_effect=ConnectionResetError()))
    cache = CacheService(store)
    fetch = AsyncMock(return_value={"price": 50000})

    assert await cache.get_or_set("k", fetch, 5) == {"price": 50000}
    fetch.assert_awaited_once()


@pytest.mark.asyncio
async def test_backend_timeout_reads_as_miss(store, monkeypatch) -> None:
    monkeypatch.setattr(store, "get", AsyncMock(side_effect=asyncio.TimeoutError()))
    monkeypatch.setattr(store, "exists", AsyncMock(side_effect=asyncio.TimeoutError()))
    cache = CacheService(store)

    assert await cache.get("k") is None
    assert await cache.exists("k") is False


@pytest.mark.asyncio
async def test_concurrent_misses_each_fetch(cache: CacheService) -> None:
    calls = 0

    async def slow_fetch() -> int:
        nonlocal calls
        calls += 1
        value = calls
        await asyncio.sleep(0)
        return value

    results = await asyncio.gather(
        cache.get_or_set("k", slow_fetch, 60),
        cache.get_or_set("k", slow_fetch, 60),
    )

    # No single-flight: both callers miss and fetch, last write wins
    assert calls == 2
    assert sorted(results) == [1, 2]
    assert await cache.get("k") in (1, 2)

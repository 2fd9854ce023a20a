"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so settings never pick
up a developer's .env file or try to reach a real Redis.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("REDIS_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")

import pytest  # noqa: E402

from app.adapters.kv.base import AbstractKeyValueStore  # noqa: E402
from app.adapters.kv.in_memory import InMemoryKeyValueStore  # noqa: E402
from app.adapters.mezo.base import AbstractMezoClient, VaultInfo, WalletBalances  # noqa: E402
from app.core.errors import KeyValueStoreError, UpstreamAppError  # noqa: E402
from app.services.cache_service import CacheService  # noqa: E402


class FakeClock:
    """Deterministic clock used to drive TTL expiry."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FailingKeyValueStore(AbstractKeyValueStore):
    """Backend whose every command fails, like an unreachable Redis."""

    def _fail(self, operation: str) -> KeyValueStoreError:
        return KeyValueStoreError(
            code="kv_backend_error",
            message=f"Redis {operation} failed: ConnectionError",
            details={"operation": operation},
        )

    async def ping(self) -> bool:
        raise self._fail("ping")

    async def get(self, key: str) -> str | None:
        raise self._fail("get")

    async def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        raise self._fail("set")

    async def delete(self, *keys: str) -> int:
        raise self._fail("delete")

    async def exists(self, key: str) -> int:
        raise self._fail("exists")

    async def keys(self, pattern: str) -> list[str]:
        raise self._fail("keys")


class FakeMezoClient(AbstractMezoClient):
    """Upstream stand-in returning queued values and counting calls."""

    def __init__(self) -> None:
        self.prices: list[float] = [50000.0]
        self.balances: WalletBalances = {
            "musdBalance": "10.50",
            "vaultBalance": "2.25",
            "totalBalance": "12.75",
        }
        self.price_calls = 0
        self.balance_calls: list[str] = []
        self.vault_info: VaultInfo = {"apy": "5.25"}
        self.vault_info_calls = 0
        self.borrow_position = "1000.00"
        self.borrow_calls: list[str] = []
        self.fail = False
        self.closed = False

    async def close(self) -> None:
        self.closed = True

    async def get_btc_price(self) -> float:
        self.price_calls += 1
        if self.fail:
            raise UpstreamAppError(code="price_unavailable", message="Failed to fetch BTC price")
        return self.prices[min(self.price_calls, len(self.prices)) - 1]

    async def get_total_balance(self, address: str) -> WalletBalances:
        self.balance_calls.append(address)
        if self.fail:
            raise UpstreamAppError(code="rpc_unavailable", message="Mezo RPC request failed")
        return dict(self.balances)  # type: ignore[return-value]

    async def get_vault_info(self) -> VaultInfo:
        self.vault_info_calls += 1
        if self.fail:
            raise UpstreamAppError(code="rpc_unavailable", message="Mezo RPC request failed")
        return dict(self.vault_info)  # type: ignore[return-value]

    async def get_borrow_position(self, address: str) -> str:
        self.borrow_calls.append(address)
        if self.fail:
            raise UpstreamAppError(code="rpc_unavailable", message="Mezo RPC request failed")
        return self.borrow_position


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def failing_store() -> FailingKeyValueStore:
    return FailingKeyValueStore()


@pytest.fixture
def cache(store: InMemoryKeyValueStore) -> CacheService:
    return CacheService(store)


@pytest.fixture
def mezo_client() -> FakeMezoClient:
    return FakeMezoClient()

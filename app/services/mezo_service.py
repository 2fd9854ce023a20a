"""Cached read access to wallet balances, vault and borrow figures and the BTC price.

Wraps the upstream Mezo client with the cache-aside store so repeated reads
within the TTL are served from the key-value backend.
"""

from __future__ import annotations

import logging

from app.adapters.mezo.base import AbstractMezoClient, VaultInfo, WalletBalances
from app.core.config import settings
from app.core.errors import UpstreamAppError, ValidationAppError
from app.services.cache_service import CacheService
from app.utils.address import is_valid_address, normalize_address

logger = logging.getLogger(__name__)

BTC_PRICE_CACHE_KEY = "btc:price"
BALANCE_CACHE_PREFIX = "balance:"
VAULT_INFO_CACHE_KEY = "vault:info"
BORROW_CACHE_PREFIX = "borrow:"


def balance_cache_key(address: str) -> str:
    """Cache key for a wallet's balances (case-insensitive on the address)."""
    return f"{BALANCE_CACHE_PREFIX}{normalize_address(address)}"


def borrow_cache_key(address: str) -> str:
    return f"{BORROW_CACHE_PREFIX}{normalize_address(address)}"


def _ttl_or_default(ttl_seconds: int | None, default: int) -> int:
    return default if ttl_seconds is None else ttl_seconds


class MezoService:
    """Service combining the upstream client with the cache.

    Attributes:
        cache: Cache-aside store.
        client: Upstream balance/price client.
    """

    def __init__(
        self,
        cache: CacheService,
        client: AbstractMezoClient,
        *,
        price_ttl_seconds: int | None = None,
        balance_ttl_seconds: int | None = None,
        vault_info_ttl_seconds: int | None = None,
        borrow_ttl_seconds: int | None = None,
    ) -> None:
        cache_settings = settings.cache
        self.cache = cache
        self.client = client
        self.price_ttl_seconds = _ttl_or_default(
            price_ttl_seconds, cache_settings.btc_price_ttl_seconds
        )
        self.balance_ttl_seconds = _ttl_or_default(
            balance_ttl_seconds, cache_settings.balance_ttl_seconds
        )
        self.vault_info_ttl_seconds = _ttl_or_default(
            vault_info_ttl_seconds, cache_settings.vault_info_ttl_seconds
        )
        self.borrow_ttl_seconds = _ttl_or_default(
            borrow_ttl_seconds, cache_settings.borrow_position_ttl_seconds
        )

    @staticmethod
    def _require_address(address: str) -> str:
        if not is_valid_address(address):
            raise ValidationAppError(
                code="invalid_address",
                message="Address must be a 0x-prefixed 20-byte hex string",
            )
        return normalize_address(address)

    async def get_btc_price(self) -> float:
        """Return the BTC price, cached for ``price_ttl_seconds``.

        Raises:
            UpstreamAppError: If the price is neither cached nor fetchable.
        """
        price = await self.cache.get_or_set(
            BTC_PRICE_CACHE_KEY,
            self.client.get_btc_price,
            self.price_ttl_seconds,
        )
        if price is None:
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="BTC price is temporarily unavailable",
                details={"upstream": "price_api", "cache_key": BTC_PRICE_CACHE_KEY},
            )
        return price

    async def get_balances(self, address: str) -> WalletBalances:
        """Return a wallet's balances, cached for ``balance_ttl_seconds``.

        Args:
            address: Wallet address in any casing.

        Raises:
            ValidationAppError: If the address is malformed.
            UpstreamAppError: If balances are neither cached nor fetchable.
        """
        normalized = self._require_address(address)
        key = balance_cache_key(normalized)

        balances = await self.cache.get_or_set(
            key,
            lambda: self.client.get_total_balance(normalized),
            self.balance_ttl_seconds,
        )
        if balances is None:
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="Balances are temporarily unavailable",
                details={"upstream": "mezo_rpc", "cache_key": key},
            )
        return balances

    async def refresh_balances(self, address: str) -> WalletBalances:
        """Drop the cached balances for address and read them again."""
        normalized = self._require_address(address)
        await self.cache.delete(balance_cache_key(normalized))
        logger.info("mezo.balances_refresh", extra={"cache_key": balance_cache_key(normalized)})
        return await self.get_balances(normalized)

    async def get_vault_info(self) -> VaultInfo:
        """Return the vault APY, cached for ``vault_info_ttl_seconds``."""
        vault_info = await self.cache.get_or_set(
            VAULT_INFO_CACHE_KEY,
            self.client.get_vault_info,
            self.vault_info_ttl_seconds,
        )
        if vault_info is None:
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="Vault info is temporarily unavailable",
                details={"upstream": "mezo_rpc", "cache_key": VAULT_INFO_CACHE_KEY},
            )
        return vault_info

    async def get_borrow_position(self, address: str) -> str:
        """Return the MUSD borrowed by a wallet, cached for ``borrow_ttl_seconds``.

        Raises:
            ValidationAppError: If the address is malformed.
            UpstreamAppError: If the position is neither cached nor fetchable.
        """
        normalized = self._require_address(address)
        key = borrow_cache_key(normalized)

        position = await self.cache.get_or_set(
            key,
            lambda: self.client.get_borrow_position(normalized),
            self.borrow_ttl_seconds,
        )
        if position is None:
            raise UpstreamAppError(
                code="upstream_unavailable",
                message="Borrow position is temporarily unavailable",
                details={"upstream": "mezo_rpc", "cache_key": key},
            )
        return position

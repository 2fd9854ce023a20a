from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TypedDict


class WalletBalances(TypedDict):
    """Balances of a wallet, as decimal strings with two places."""

    musdBalance: str
    vaultBalance: str
    totalBalance: str


class VaultInfo(TypedDict):
    apy: str


class AbstractMezoClient(ABC):
    """Interface for read-only lookups against the Mezo network and price feeds."""

    async def close(self) -> None:
        """Release network resources (no-op by default)."""

    @abstractmethod
    async def get_btc_price(self) -> float:
        """Return the current BTC price in USD.

        Raises:
            UpstreamAppError: If the price source fails or returns bad data.
        """
        ...

    @abstractmethod
    async def get_total_balance(self, address: str) -> WalletBalances:
        """Return MUSD, vault and total balances for a checksummed or lowercase address.

        Raises:
            UpstreamAppError: If any contract read fails.
        """
        ...

    @abstractmethod
    async def get_vault_info(self) -> VaultInfo:
        """Return savings vault figures (APY as a two-decimal percentage).

        Raises:
            UpstreamAppError: If the vault read fails.
        """
        ...

    @abstractmethod
    async def get_borrow_position(self, address: str) -> str:
        """Return the MUSD borrowed against a wallet as a two-decimal string."""
        ...

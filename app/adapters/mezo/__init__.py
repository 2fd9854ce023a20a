"""Upstream data sources for wallet balances, vault and borrow figures and the BTC price."""

from app.adapters.mezo.base import AbstractMezoClient, VaultInfo, WalletBalances
from app.adapters.mezo.factory import create_mezo_client
from app.adapters.mezo.http_client import HttpMezoClient

__all__ = [
    "AbstractMezoClient",
    "HttpMezoClient",
    "VaultInfo",
    "WalletBalances",
    "create_mezo_client",
]

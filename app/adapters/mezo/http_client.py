"""HTTP client for Mezo JSON-RPC contract reads and the CoinGecko price API."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import httpx

from app.adapters.mezo.base import AbstractMezoClient, VaultInfo, WalletBalances
from app.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)

# First four bytes of keccak256 of each function signature
BALANCE_OF_SELECTOR = "0x70a08231"  # balanceOf(address)
GET_APY_SELECTOR = "0xd2cbf7ad"  # getAPY()
GET_BORROW_POSITION_SELECTOR = "0xbb236886"  # getBorrowPosition(address)

TOKEN_DECIMALS = 18
# The vault reports APY as a percentage with two implied decimals
APY_DECIMALS = 2


def encode_address_call(selector: str, address: str) -> str:
    """ABI-encode a call taking a single ``address`` argument."""
    return selector + address.lower().removeprefix("0x").rjust(64, "0")


def encode_balance_of(address: str) -> str:
    return encode_address_call(BALANCE_OF_SELECTOR, address)


def format_units(raw: int, decimals: int = TOKEN_DECIMALS) -> Decimal:
    return Decimal(raw) / (Decimal(10) ** decimals)


def _two_places(value: Decimal) -> str:
    return f"{value:.2f}"


class HttpMezoClient(AbstractMezoClient):
    """Reads token balances over JSON-RPC and the BTC price over REST.

    Uses a single ``httpx.AsyncClient`` for both upstreams.
    """

    def __init__(
        self,
        *,
        rpc_url: str,
        musd_token_address: str,
        vault_contract_address: str,
        price_api_url: str,
        borrow_contract_address: str = "",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            rpc_url: Mezo JSON-RPC endpoint.
            musd_token_address: MUSD ERC-20 contract address.
            vault_contract_address: Savings vault contract address.
            borrow_contract_address: Borrower operations contract address.
            price_api_url: Base URL of the CoinGecko-compatible API.
            timeout_seconds: Timeout for each request in seconds.
            http_client: Pre-built client (tests inject a mock transport).
        """
        self.rpc_url = rpc_url
        self.musd_token_address = musd_token_address
        self.vault_contract_address = vault_contract_address
        self.borrow_contract_address = borrow_contract_address
        self.price_api_url = price_api_url.rstrip("/")
        self.client = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._rpc_id = 0

    async def close(self) -> None:
        await self.client.aclose()

    async def get_btc_price(self) -> float:
        """Fetch the BTC/USD spot price.

        Returns:
            float: Price in USD.

        Raises:
            UpstreamAppError: On transport errors or an unexpected payload.
        """
        try:
            response = await self.client.get(
                f"{self.price_api_url}/simple/price",
                params={"ids": "bitcoin", "vs_currencies": "usd"},
            )
            response.raise_for_status()
            return float(response.json()["bitcoin"]["usd"])
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as exc:
            raise UpstreamAppError(
                code="price_unavailable",
                message="Failed to fetch BTC price",
                details={"upstream": "price_api", "context": {"error_type": type(exc).__name__}},
            ) from exc

    async def _eth_call(self, to: str, data: str) -> int:
        self._rpc_id += 1
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": self._rpc_id,
            "method": "eth_call",
            "params": [{"to": to, "data": data}, "latest"],
        }
        try:
            response = await self.client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamAppError(
                code="rpc_unavailable",
                message="Mezo RPC request failed",
                details={"upstream": "mezo_rpc", "context": {"error_type": type(exc).__name__}},
            ) from exc

        if "error" in body:
            raise UpstreamAppError(
                code="rpc_error",
                message="Mezo RPC returned an error",
                details={"upstream": "mezo_rpc", "context": {"rpc_error": body["error"]}},
            )

        result = body.get("result")
        if not result or result == "0x":
            return 0
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise UpstreamAppError(
                code="rpc_bad_result",
                message="Mezo RPC returned a malformed result",
                details={"upstream": "mezo_rpc"},
            ) from exc

    async def get_total_balance(self, address: str) -> WalletBalances:
        """Read MUSD and vault balances and sum them.

        Args:
            address: Wallet address.

        Returns:
            WalletBalances with two-decimal strings.
        """
        call_data = encode_balance_of(address)
        musd = format_units(await self._eth_call(self.musd_token_address, call_data))
        vault = format_units(await self._eth_call(self.vault_contract_address, call_data))

        logger.debug("mezo.balances_fetched", extra={"contracts": 2})
        return {
            "musdBalance": _two_places(musd),
            "vaultBalance": _two_places(vault),
            "totalBalance": _two_places(musd + vault),
        }

    async def get_vault_info(self) -> VaultInfo:
        """Read the savings vault's current APY."""
        raw = await self._eth_call(self.vault_contract_address, GET_APY_SELECTOR)
        return {"apy": _two_places(format_units(raw, APY_DECIMALS))}

    async def get_borrow_position(self, address: str) -> str:
        """Read the MUSD debt of a wallet as a two-decimal string.

        Raises:
            UpstreamAppError: If no borrow contract is configured or the read fails.
        """
        if not self.borrow_contract_address:
            raise UpstreamAppError(
                code="borrow_contract_unset",
                message="Borrow contract address is not configured",
                details={"upstream": "mezo_rpc"},
            )
        call_data = encode_address_call(GET_BORROW_POSITION_SELECTOR, address)
        raw = await self._eth_call(self.borrow_contract_address, call_data)
        return _two_places(format_units(raw))

"""Tests for the HTTP Mezo client using httpx's mock transport."""

import json

import httpx
import pytest

from app.adapters.mezo.http_client import (
    GET_APY_SELECTOR,
    GET_BORROW_POSITION_SELECTOR,
    HttpMezoClient,
    encode_address_call,
    encode_balance_of,
    format_units,
)
from app.core.errors import UpstreamAppError

MUSD = "0x" + "11" * 20
VAULT = "0x" + "22" * 20
BORROW = "0x" + "33" * 20
WALLET = "0x" + "AB" * 20


def _client(handler, borrow_contract_address: str = BORROW) -> HttpMezoClient:
    return HttpMezoClient(
        rpc_url="https://rpc.example",
        musd_token_address=MUSD,
        vault_contract_address=VAULT,
        price_api_url="https://prices.example/api/v3/",
        borrow_contract_address=borrow_contract_address,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _rpc_result(value: int) -> dict:
    return {"jsonrpc": "2.0", "id": 1, "result": hex(value)}


def test_encode_balance_of_pads_lowercase_address() -> None:
    data = encode_balance_of(WALLET)

    assert data.startswith("0x70a08231")
    assert len(data) == 10 + 64
    assert data.endswith("ab" * 20)


def test_format_units_uses_18_decimals() -> None:
    assert format_units(1_500_000_000_000_000_000) == 1.5


@pytest.mark.asyncio
async def test_get_btc_price() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"bitcoin": {"usd": 50000}})

    client = _client(handler)

    assert await client.get_btc_price() == 50000.0
    assert seen[0].url.path == "/api/v3/simple/price"
    assert seen[0].url.params["ids"] == "bitcoin"
    assert seen[0].url.params["vs_currencies"] == "usd"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500),
        httpx.Response(200, json={"ethereum": {"usd": 1}}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_get_btc_price_failures_raise_upstream_error(response) -> None:
    client = _client(lambda request: response)

    with pytest.raises(UpstreamAppError) as exc_info:
        await client.get_btc_price()

    assert exc_info.value.code == "price_unavailable"


@pytest.mark.asyncio
async def test_get_total_balance_sums_both_contracts() -> None:
    balances = {
        MUSD: 10_504_000_000_000_000_000,  # 10.504
        VAULT: 2_250_000_000_000_000_000,  # 2.25
    }

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        assert payload["method"] == "eth_call"
        call = payload["params"][0]
        assert call["data"] == encode_balance_of(WALLET)
        return httpx.Response(200, json=_rpc_result(balances[call["to"]]))

    client = _client(handler)

    assert await client.get_total_balance(WALLET) == {
        "musdBalance": "10.50",
        "vaultBalance": "2.25",
        "totalBalance": "12.75",
    }


@pytest.mark.asyncio
async def test_empty_rpc_result_is_zero() -> None:
    client = _client(lambda request: httpx.Response(200, json={"result": "0x"}))

    balances = await client.get_total_balance(WALLET)

    assert balances["totalBalance"] == "0.00"


@pytest.mark.asyncio
async def test_rpc_error_raises_upstream_error() -> None:
    client = _client(
        lambda request: httpx.Response(
            200, json={"error": {"code": -32000, "message": "execution reverted"}}
        )
    )

    with pytest.raises(UpstreamAppError) as exc_info:
        await client.get_total_balance(WALLET)

    assert exc_info.value.code == "rpc_error"


@pytest.mark.asyncio
async def test_transport_error_raises_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)

    with pytest.raises(UpstreamAppError) as exc_info:
        await client.get_total_balance(WALLET)

    assert exc_info.value.code == "rpc_unavailable"
    await client.close()


@pytest.mark.asyncio
async def test_get_vault_info_reads_apy_with_two_decimals() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        call = json.loads(request.content)["params"][0]
        assert call == {"to": VAULT, "data": GET_APY_SELECTOR}
        return httpx.Response(200, json=_rpc_result(525))

    client = _client(handler)

    assert await client.get_vault_info() == {"apy": "5.25"}


@pytest.mark.asyncio
async def test_get_borrow_position_reads_borrow_contract() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        call = json.loads(request.content)["params"][0]
        assert call["to"] == BORROW
        assert call["data"] == encode_address_call(GET_BORROW_POSITION_SELECTOR, WALLET)
        return httpx.Response(200, json=_rpc_result(1_234_560_000_000_000_000_000))

    client = _client(handler)

    assert await client.get_borrow_position(WALLET) == "1234.56"


@pytest.mark.asyncio
async def test_borrow_position_without_contract_raises_upstream_error() -> None:
    seen: list[httpx.Request] = []
    client = _client(lambda request: seen.append(request), borrow_contract_address="")

    with pytest.raises(UpstreamAppError) as exc_info:
        await client.get_borrow_position(WALLET)

    assert exc_info.value.code == "borrow_contract_unset"
    assert seen == []

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.dependencies import get_mezo_service
from app.core.rate_limit import strict_rate_limiter
from app.schemas.mezo import (
    BalancesResponse,
    BorrowPositionResponse,
    BtcPriceResponse,
    VaultInfoResponse,
)
from app.services.mezo_service import MezoService

router = APIRouter(prefix="/mezo", tags=["Mezo"])

MezoServiceDep = Annotated[MezoService, Depends(get_mezo_service)]


@router.get("/balances/{address}", response_model=BalancesResponse)
async def get_balances(address: str, service: MezoServiceDep) -> BalancesResponse:
    """Return MUSD, vault and total balances for a wallet (cached briefly).

    Raises:
        ValidationAppError: 400 when the address is malformed.
        UpstreamAppError: 503 when balances cannot be determined right now.
    """
    balances = await service.get_balances(address)
    return BalancesResponse(data=balances)


@router.post(
    "/balances/{address}/refresh",
    response_model=BalancesResponse,
    dependencies=[Depends(strict_rate_limiter)],
)
async def refresh_balances(address: str, service: MezoServiceDep) -> BalancesResponse:
    """Invalidate cached balances for a wallet and read them from the chain."""
    balances = await service.refresh_balances(address)
    return BalancesResponse(data=balances)


@router.get("/vault/info", response_model=VaultInfoResponse)
async def get_vault_info(service: MezoServiceDep) -> VaultInfoResponse:
    vault_info = await service.get_vault_info()
    return VaultInfoResponse(data=vault_info)

@router.get("/btc-price", response_model=BtcPriceResponse)
async def get_btc_price(service: MezoServiceDep) -> BtcPriceResponse:
    """Return the BTC price in USD (cached for a minute by default)."""
    price = await service.get_btc_price()
    return BtcPriceResponse(data={"price": price})


@router.get("/borrow/{address}", response_model=BorrowPositionResponse)
async def get_borrow_position(address: str, service: MezoServiceDep) -> BorrowPositionResponse:
    """Return the MUSD borrowed against a wallet.

    Raises:
        ValidationAppError: 400 when the address is malformed.
        UpstreamAppError: 503 when the position cannot be read right now.
    """
    position = await service.get_borrow_position(address)
    return BorrowPositionResponse(data={"position": position})

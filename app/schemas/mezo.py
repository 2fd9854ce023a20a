"""Pydantic schemas for Mezo balance, price, vault and borrow responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BalancesData(BaseModel):
    """Wallet balances as two-decimal strings."""

    musdBalance: str = Field(..., description="MUSD token balance.")
    vaultBalance: str = Field(..., description="Balance deposited in the savings vault.")
    totalBalance: str = Field(..., description="Sum of MUSD and vault balances.")


class BalancesResponse(BaseModel):
    data: BalancesData


class BtcPriceData(BaseModel):
    price: float = Field(..., description="BTC spot price in USD.")


class BtcPriceResponse(BaseModel):
    data: BtcPriceData


class VaultInfoData(BaseModel):
    apy: str = Field(..., description="Vault APY as a two-decimal percentage.")


class VaultInfoResponse(BaseModel):
    data: VaultInfoData


class BorrowPositionData(BaseModel):
    position: str = Field(..., description="MUSD borrowed by the wallet, two decimals.")


class BorrowPositionResponse(BaseModel):
    data: BorrowPositionData

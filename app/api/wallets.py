"""
Wallet catalog and balance endpoints.

GET /wallets                    — Supported rails.
GET /wallets/{method}/balance   — Balance of an account on a rail.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from app.api.payments import get_aggregator
from app.engine.aggregator import PaymentAggregator

router = APIRouter(prefix="/wallets", tags=["wallets"])


class WalletOut(BaseModel):
    code: str
    name: str
    country: str


class BalanceOut(BaseModel):
    method: str
    account_id: str
    balance: float


@router.get("", response_model=list[WalletOut])
async def list_wallets(aggregator: PaymentAggregator = Depends(get_aggregator)):
    return aggregator.list_wallets()


@router.get("/{method}/balance", response_model=BalanceOut)
async def get_balance(
    method: str,
    account_id: str = Query(..., description="Account or wallet identifier"),
    aggregator: PaymentAggregator = Depends(get_aggregator),
):
    """404 when the method is unsupported or the rail has no balance concept."""
    balance = await aggregator.get_balance(method, account_id)
    if balance is None:
        raise HTTPException(status_code=404, detail=f"No balance available for {method}")
    return BalanceOut(method=method, account_id=account_id, balance=float(balance))

"""
Payment Aggregator — one API over many payment rails.

Creates payments, polls their status and queries balances across mobile
money wallets (M-Pesa, EcoCash, CPay, Khetsi), the MyWallet merchant API,
bank EFT and cards. Every payment is recorded in a durable ledger so state
can be audited after a crash or redeploy.

Start the server:
    uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from app.api.health import router as health_router
from app.api.payments import router as payments_router
from app.api.wallets import router as wallets_router
from app.config import settings
from app.database import async_session, init_db
from app.engine.aggregator import PaymentAggregator
from app.engine.ledger import PaymentLedger
from app.routing.registry import build_registry

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the database and providers on startup; tear them down on shutdown."""
    await init_db()
    ledger = PaymentLedger(async_session)
    async with httpx.AsyncClient(timeout=settings.mywallet_timeout_seconds) as http:
        aggregator = PaymentAggregator(build_registry(settings, ledger, http), ledger)
        app.state.aggregator = aggregator
        try:
            yield
        finally:
            await aggregator.aclose()


app = FastAPI(
    title="Payment Aggregator",
    description=(
        "Uniform payment API over mobile money, wallet, card and bank EFT rails. "
        "Routes each payment to its provider by method code, reconciles pending "
        "remote-wallet payments and keeps a durable record of every payment."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(payments_router, prefix="/api/v1")
app.include_router(wallets_router, prefix="/api/v1")

"""Shared test fixtures."""

import json
from decimal import Decimal
from typing import Callable, Optional

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import init_db
from app.engine.ledger import PaymentLedger
from app.providers.base import CustomerInfo, PaymentRequest


@pytest_asyncio.fixture
async def ledger():
    """Ledger over a fresh in-memory database for each test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    await init_db(engine)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    yield PaymentLedger(session_factory)

    await engine.dispose()


@pytest.fixture
def make_request() -> Callable[..., PaymentRequest]:
    def _make(
        method: str = "card",
        amount: str = "100",
        otp: Optional[str] = None,
        reference: Optional[str] = None,
        phone: str = "+26658001234",
    ) -> PaymentRequest:
        return PaymentRequest(
            amount=Decimal(amount),
            payment_method=method,
            merchant_id="MERCH-001",
            customer=CustomerInfo(phone=phone, name="Lineo Mokoena"),
            reference=reference,
            otp=otp,
        )

    return _make


class FakeMyWallet:
    """
    In-process stand-in for the MyWallet API, mounted via httpx.MockTransport.

    Each endpoint answers with a configurable (status code, JSON body) pair;
    every request is recorded for assertions.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, tuple[int, object]] = {
            "login": (200, {"token": "session-abc"}),
            "checkUser": (200, {"data": {"token": "pay-token-1"}}),
            "payMerchant": (200, {"status": "success", "reference": "MW-REF-123"}),
            "checkStatus": (200, {"status": "success"}),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        operation = request.url.path.rsplit("/", 1)[-1]
        if operation not in self.responses:
            return httpx.Response(404, json={"message": "not found"})
        status_code, body = self.responses[operation]
        if isinstance(body, Exception):
            raise body
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)

    def calls(self, operation: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/" + operation)]

    def body_of(self, operation: str, index: int = 0) -> dict:
        return json.loads(self.calls(operation)[index].content)


@pytest.fixture
def fake_mywallet() -> FakeMyWallet:
    return FakeMyWallet()


@pytest_asyncio.fixture
async def mywallet_http(fake_mywallet: FakeMyWallet):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_mywallet.handler), timeout=5.0) as client:
        yield client

"""
Simulated payment providers.

Stand-ins for rails without a live integration:
  - Instant settlement (card): success in the same call
  - Delayed settlement (M-Pesa, EcoCash, CPay, Khetsi, EFT): pending, then a
    scheduled task flips the payment to success after a fixed delay

Each provider owns its payment store and its settlement tasks. Settled
payments leave the store once the aggregator has recorded them. ``aclose()``
cancels outstanding tasks so nothing outlives the process lifespan.
"""

import asyncio
import hashlib
import logging
from decimal import Decimal
from typing import Callable, Optional

from app.models.enums import PaymentStatus
from app.providers.base import PaymentProvider, PaymentRequest, PaymentResponse, new_payment_id

logger = logging.getLogger("payment_aggregator.simulated")

BalancePolicy = Callable[[str], Optional[Decimal]]


def fixed_balance(amount: str) -> BalancePolicy:
    """Same balance for every account."""
    value = Decimal(amount)

    def policy(account_id: str) -> Optional[Decimal]:
        return value

    return policy


def hashed_balance(modulus: int, floor: str) -> BalancePolicy:
    """
    Deterministic per-account balance in [floor, floor + modulus / 100).

    Uses a stable digest so the same account shows the same balance across
    restarts.
    """
    base = Decimal(floor)

    def policy(account_id: str) -> Optional[Decimal]:
        if not account_id or not account_id.strip():
            return None
        digest = hashlib.sha256(account_id.encode("utf-8")).digest()
        bucket = int.from_bytes(digest[:4], "big") % modulus
        return Decimal(bucket) / Decimal(100) + base

    return policy


def no_balance(account_id: str) -> Optional[Decimal]:
    return None


class InstantSettlementProvider(PaymentProvider):
    """Rail that settles synchronously (card gateways)."""

    def __init__(self, code: str, balance_policy: BalancePolicy = no_balance):
        self._code = code
        self._balance_policy = balance_policy
        self._store: dict[str, PaymentResponse] = {}

    @property
    def name(self) -> str:
        return self._code

    async def create_payment(self, request: PaymentRequest) -> PaymentResponse:
        payment = PaymentResponse.pending_for(new_payment_id(self._code), request, self._code)
        payment.provider_reference = request.reference or payment.id
        payment.mark_success()
        self._store[payment.id] = payment
        logger.info("%s payment %s settled instantly", self._code, payment.id)
        return payment

    async def get_payment(self, payment_id: str) -> Optional[PaymentResponse]:
        return self._store.get(payment_id)

    def evict(self, payment_id: str) -> None:
        self._store.pop(payment_id, None)

    async def get_balance(self, account_id: str) -> Optional[Decimal]:
        return self._balance_policy(account_id)


class DelayedSettlementProvider(PaymentProvider):
    """
    Rail that settles asynchronously after ``settlement_delay`` seconds.

    The settlement task only flips a payment that is still pending, so a
    payment that reached a terminal state in the meantime is left alone.
    """

    def __init__(
        self,
        code: str,
        settlement_delay: float,
        balance_policy: BalancePolicy = no_balance,
    ):
        self._code = code
        self._settlement_delay = settlement_delay
        self._balance_policy = balance_policy
        self._store: dict[str, PaymentResponse] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def name(self) -> str:
        return self._code

    @property
    def settlement_delay(self) -> float:
        return self._settlement_delay

    async def create_payment(self, request: PaymentRequest) -> PaymentResponse:
        payment = PaymentResponse.pending_for(new_payment_id(self._code), request, self._code)
        payment.provider_reference = request.reference or payment.id
        self._store[payment.id] = payment

        task = asyncio.create_task(self._settle_later(payment.id), name=f"settle-{payment.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info(
            "%s payment %s pending, settles in %.1fs",
            self._code,
            payment.id,
            self._settlement_delay,
        )
        return payment

    async def get_payment(self, payment_id: str) -> Optional[PaymentResponse]:
        return self._store.get(payment_id)

    def evict(self, payment_id: str) -> None:
        self._store.pop(payment_id, None)

    async def get_balance(self, account_id: str) -> Optional[Decimal]:
        return self._balance_policy(account_id)

    async def aclose(self) -> None:
        """Cancel settlement tasks that have not fired yet."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("%s: cancelled %d pending settlement task(s)", self._code, len(tasks))

    async def _settle_later(self, payment_id: str) -> None:
        await asyncio.sleep(self._settlement_delay)
        payment = self._store.get(payment_id)
        if payment is not None and payment.status is PaymentStatus.PENDING:
            payment.mark_success()
            logger.info("%s payment %s settled", self._code, payment_id)

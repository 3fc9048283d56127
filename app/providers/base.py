"""
Abstract payment provider interface.

Every rail (mobile-money wallet, bank EFT, card, remote wallet API)
implements this interface. The aggregator only ever talks to providers
through it, picking the implementation from the registry by method code.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from app.models.enums import PaymentStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_payment_id(prefix: str) -> str:
    """Provider-namespaced payment id, e.g. ``ecocash_3f9a0c1b2d``."""
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@dataclass(frozen=True)
class CustomerInfo:
    phone: str = ""
    name: Optional[str] = None


@dataclass(frozen=True)
class PaymentRequest:
    """Request to create a payment. Immutable once submitted."""

    amount: Decimal
    payment_method: str
    merchant_id: str = ""
    currency: str = "LSL"
    customer: CustomerInfo = field(default_factory=CustomerInfo)
    reference: Optional[str] = None  # Caller-supplied, else the provider generates one
    otp: Optional[str] = None  # Required by mywallet only
    callback_url: Optional[str] = None


@dataclass
class PaymentResponse:
    """
    Provider-agnostic view of a payment.

    Created once per create call and mutated in place as the status moves.
    ``completed_at`` is set if and only if the status is SUCCESS.
    """

    id: str
    status: PaymentStatus
    amount: Decimal
    currency: str
    payment_method: str
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    errors: list[str] = field(default_factory=list)
    merchant_id: str = ""
    customer_phone: Optional[str] = None
    provider_reference: str = ""  # Remote system's transaction id

    @classmethod
    def pending_for(cls, payment_id: str, request: PaymentRequest, method: str) -> "PaymentResponse":
        return cls(
            id=payment_id,
            status=PaymentStatus.PENDING,
            amount=request.amount,
            currency=request.currency,
            payment_method=method,
            merchant_id=request.merchant_id,
            customer_phone=request.customer.phone or None,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def mark_success(self, at: Optional[datetime] = None) -> None:
        if self.is_terminal:
            return
        self.status = PaymentStatus.SUCCESS
        self.completed_at = at or utcnow()

    def mark_failed(self, *diagnostics: str) -> None:
        if self.is_terminal:
            return
        self.status = PaymentStatus.FAILED
        self.completed_at = None
        self.errors.extend(d for d in diagnostics if d)


class PaymentProvider(ABC):
    """Abstract base class for payment providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Method code this provider serves (e.g. 'ecocash')."""
        ...

    @abstractmethod
    async def create_payment(self, request: PaymentRequest) -> PaymentResponse:
        """
        Submit a payment to the rail.

        Must not raise for business-level failures: a failed attempt comes
        back as ``status=failed`` with at least one diagnostic in ``errors``.
        """
        ...

    @abstractmethod
    async def get_payment(self, payment_id: str) -> Optional[PaymentResponse]:
        """
        Current view of a payment, or None if this provider does not know it.

        Remote reconciliation happens only while the payment is pending and
        a provider reference exists.
        """
        ...

    async def get_balance(self, account_id: str) -> Optional[Decimal]:
        """Account balance; None for rails without a balance concept."""
        return None

    def evict(self, payment_id: str) -> None:
        """
        Drop in-memory state for a payment the ledger now holds in a terminal
        state. Later lookups fall back to the ledger.
        """
        return None

    async def aclose(self) -> None:
        """Release resources owned by the provider (timers, connections)."""
        return None

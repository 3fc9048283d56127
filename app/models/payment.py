"""SQLAlchemy models for the payment aggregator."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentRecord(Base):
    """
    Last known state of a payment, denormalized.

    Written through after every provider call (create and each status
    refresh) so payment history survives restarts. The ledger never changes
    a status on its own; it mirrors what the provider last reported.
    """

    __tablename__ = "payment_responses"

    id = Column(String(64), primary_key=True)
    status = Column(String(20), nullable=False, default="pending")
    amount = Column(Numeric(18, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="LSL")
    payment_method = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    errors_json = Column(Text, nullable=False, default="[]")  # JSON: ["diagnostic", ...]
    merchant_id = Column(String(100), nullable=False, default="")
    customer_phone = Column(String(32), nullable=True)
    provider_reference = Column(String(100), nullable=False, default="")


class MyWalletCacheEntry(Base):
    """
    MyWallet session artifacts for a payment (1:1 with payment_responses).

    Lets status reconciliation resume after a restart using the cached
    bearer token instead of logging in again.
    """

    __tablename__ = "mywallet_cache_entries"

    payment_id = Column(String(64), primary_key=True)
    provider_reference = Column(String(100), nullable=False, default="")
    session_token = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    last_status_check = Column(DateTime(timezone=True), nullable=True)

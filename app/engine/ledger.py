"""
Payment ledger: the durable record of every payment.

A write-through mirror of provider state. The aggregator upserts a
payment after every provider call. The MyWallet provider writes a new
payment together with its session cache entry in one transaction, and
upserts the entry alone after each reconciliation. Each operation runs in
its own session, so writes for different payments never share a
transaction and repeating an upsert for the same id is harmless.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.engine.errors import PersistenceError
from app.models.enums import PaymentStatus
from app.models.payment import MyWalletCacheEntry, PaymentRecord
from app.providers.base import PaymentResponse, utcnow

logger = logging.getLogger("payment_aggregator.ledger")


@dataclass
class SessionCacheEntry:
    """MyWallet session artifacts kept alongside a payment."""

    payment_id: str
    provider_reference: str
    session_token: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    last_status_check: Optional[datetime] = None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything here is stored in UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _load_errors(raw: Optional[str]) -> list[str]:
    if not raw:
        return []
    try:
        errors = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return []
    if not isinstance(errors, list):
        return []
    return [str(e) for e in errors]


def _record_to_response(record: PaymentRecord) -> PaymentResponse:
    return PaymentResponse(
        id=record.id,
        status=PaymentStatus(record.status),
        amount=record.amount,
        currency=record.currency,
        payment_method=record.payment_method,
        created_at=_as_utc(record.created_at),
        completed_at=_as_utc(record.completed_at),
        errors=_load_errors(record.errors_json),
        merchant_id=record.merchant_id or "",
        customer_phone=record.customer_phone,
        provider_reference=record.provider_reference or "",
    )


def _apply_response(record: PaymentRecord, payment: PaymentResponse) -> None:
    record.status = payment.status.value
    record.amount = payment.amount
    record.currency = payment.currency
    record.payment_method = payment.payment_method
    record.created_at = payment.created_at
    record.completed_at = payment.completed_at
    record.errors_json = json.dumps(list(payment.errors))
    record.merchant_id = payment.merchant_id or ""
    record.customer_phone = payment.customer_phone
    record.provider_reference = payment.provider_reference or ""


def _entry_from_row(row: MyWalletCacheEntry) -> SessionCacheEntry:
    return SessionCacheEntry(
        payment_id=row.payment_id,
        provider_reference=row.provider_reference or "",
        session_token=row.session_token,
        created_at=_as_utc(row.created_at),
        last_status_check=_as_utc(row.last_status_check),
    )


async def _upsert_payment(session: AsyncSession, payment: PaymentResponse) -> None:
    record = await session.get(PaymentRecord, payment.id)
    if record is None:
        record = PaymentRecord(id=payment.id)
        session.add(record)
    _apply_response(record, payment)


async def _upsert_session_entry(session: AsyncSession, entry: SessionCacheEntry) -> None:
    row = await session.get(MyWalletCacheEntry, entry.payment_id)
    if row is None:
        row = MyWalletCacheEntry(payment_id=entry.payment_id, created_at=entry.created_at)
        session.add(row)
    row.provider_reference = entry.provider_reference or ""
    row.session_token = entry.session_token
    row.last_status_check = entry.last_status_check


class PaymentLedger:
    """Persistence contract for payments and MyWallet session cache entries."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_payment(self, payment_id: str) -> Optional[PaymentResponse]:
        try:
            async with self._session_factory() as session:
                record = await session.get(PaymentRecord, payment_id)
                return _record_to_response(record) if record else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load payment {payment_id}: {e}") from e

    async def list_payments(self) -> list[PaymentResponse]:
        """Every recorded payment, most recently created first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(PaymentRecord).order_by(PaymentRecord.created_at.desc())
                )
                return [_record_to_response(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list payments: {e}") from e

    async def save_payment(self, payment: PaymentResponse) -> None:
        """Insert the payment if new, otherwise overwrite the stored fields."""
        try:
            async with self._session_factory() as session:
                await _upsert_payment(session, payment)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save payment {payment.id}: {e}") from e

        logger.debug("Saved payment %s status=%s", payment.id, payment.status.value)

    async def get_session_entry(self, payment_id: str) -> Optional[SessionCacheEntry]:
        try:
            async with self._session_factory() as session:
                row = await session.get(MyWalletCacheEntry, payment_id)
                return _entry_from_row(row) if row else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load session cache for {payment_id}: {e}") from e

    async def save_session_entry(self, entry: SessionCacheEntry) -> None:
        try:
            async with self._session_factory() as session:
                await _upsert_session_entry(session, entry)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save session cache for {entry.payment_id}: {e}") from e

    async def save_payment_with_session(self, payment: PaymentResponse, entry: SessionCacheEntry) -> None:
        """
        Upsert a payment and its session cache entry in one transaction.

        Either both rows are written or neither is, so a session entry never
        exists without its payment.
        """
        try:
            async with self._session_factory() as session:
                await _upsert_payment(session, payment)
                await _upsert_session_entry(session, entry)
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save payment {payment.id} with session cache: {e}") from e

        logger.debug("Saved payment %s with session cache", payment.id)

"""
Payment aggregator — the uniform front over every rail.

Callers create payments, poll their status and query balances without
knowing which rail is behind a method code. The flow for a payment:

  1. Registry lookup (method code → provider)
  2. Provider call (create, or refresh on status queries)
  3. Write-through to the ledger after every provider call

The ledger answers "which provider owns this id" for status queries and
serves the read-only listings. It never originates status changes.
"""

import logging
from decimal import Decimal
from typing import Optional

from app.engine.errors import PaymentNotFoundError, UnsupportedMethodError
from app.engine.ledger import PaymentLedger
from app.providers.base import PaymentProvider, PaymentRequest, PaymentResponse
from app.routing.catalog import WALLET_CATALOG, WalletInfo
from app.routing.registry import ProviderRegistry

logger = logging.getLogger("payment_aggregator.aggregator")


class PaymentAggregator:
    """Routes payment operations to providers and mirrors results into the ledger."""

    def __init__(self, registry: ProviderRegistry, ledger: PaymentLedger):
        self._registry = registry
        self._ledger = ledger

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    async def create_payment(self, request: PaymentRequest) -> PaymentResponse:
        """
        Create a payment on the rail named by ``request.payment_method``.

        The provider's answer is persisted before it is returned, whether
        the payment succeeded, is pending or failed.

        Raises:
            UnsupportedMethodError: No provider is registered for the method.
                Nothing is written to the ledger.
            PersistenceError: The ledger write failed.
        """
        provider = self._registry.resolve(request.payment_method)
        if provider is None:
            logger.info("Rejected payment for unsupported method %r", request.payment_method)
            raise UnsupportedMethodError(request.payment_method)

        response = await provider.create_payment(request)
        await self._record(provider, response)

        logger.info(
            "Payment %s created via %s: status=%s amount=%s %s%s",
            response.id,
            provider.name,
            response.status.value,
            response.amount,
            response.currency,
            f" errors={response.errors}" if response.errors else "",
        )
        return response

    async def get_payment(self, payment_id: str) -> PaymentResponse:
        """
        Current view of a payment.

        The ledger record names the owning provider, which decides whether a
        remote refresh is warranted. A refreshed view is persisted; if the
        provider no longer knows the id, the ledger snapshot is returned.

        On a ledger miss every provider is asked in turn, so payments whose
        initial write was lost can still be found and re-recorded.

        Raises:
            PaymentNotFoundError: Neither the ledger nor any provider knows the id.
        """
        stored = await self._ledger.get_payment(payment_id)
        if stored is not None:
            provider = self._registry.resolve(stored.payment_method)
            if provider is None:
                logger.warning(
                    "Payment %s belongs to disabled method %s; returning stored snapshot",
                    payment_id,
                    stored.payment_method,
                )
                return stored

            refreshed = await provider.get_payment(payment_id)
            if refreshed is None:
                return stored

            await self._record(provider, refreshed)
            if refreshed.status != stored.status:
                logger.info(
                    "Payment %s moved %s -> %s",
                    payment_id,
                    stored.status.value,
                    refreshed.status.value,
                )
            return refreshed

        for provider in self._registry:
            found = await provider.get_payment(payment_id)
            if found is not None:
                logger.warning("Payment %s missing from ledger; recovered from %s", payment_id, provider.name)
                await self._record(provider, found)
                return found

        raise PaymentNotFoundError(payment_id)

    async def _record(self, provider: PaymentProvider, payment: PaymentResponse) -> None:
        """Persist a provider view; terminal payments are then served from the ledger."""
        await self._ledger.save_payment(payment)
        if payment.status.is_terminal:
            provider.evict(payment.id)

    def list_wallets(self) -> list[WalletInfo]:
        """Supported rails (static catalog, independent of the registry)."""
        return [dict(w) for w in WALLET_CATALOG]

    async def get_all_payments(self) -> list[PaymentResponse]:
        """Every recorded payment, newest first."""
        return await self._ledger.list_payments()

    async def get_balance(self, method: str, account_id: str) -> Optional[Decimal]:
        """Balance on a rail, or None when the method is unsupported or has no balance."""
        provider = self._registry.resolve(method)
        if provider is None:
            return None
        return await provider.get_balance(account_id)

    async def aclose(self) -> None:
        await self._registry.aclose()

"""
Provider registry.

Maps a payment method code to the provider instance serving it. Built once
at startup from ``settings.enabled_methods``; lookups are case-insensitive
exact matches and unknown codes simply resolve to None.
"""

import logging
from collections.abc import Iterator, Mapping
from typing import Callable, Optional

import httpx

from app.config import Settings
from app.engine.ledger import PaymentLedger
from app.models.enums import PaymentMethod
from app.providers.base import PaymentProvider
from app.providers.mywallet import MyWalletProvider
from app.providers.simulated import (
    DelayedSettlementProvider,
    InstantSettlementProvider,
    fixed_balance,
    hashed_balance,
)

logger = logging.getLogger("payment_aggregator.registry")


class ProviderRegistry:
    """Method code -> provider lookup."""

    def __init__(self, providers: Mapping[str, PaymentProvider]):
        self._providers = {code.strip().lower(): p for code, p in providers.items()}

    def resolve(self, method: Optional[str]) -> Optional[PaymentProvider]:
        if not method or not method.strip():
            return None
        return self._providers.get(method.strip().lower())

    def codes(self) -> list[str]:
        return list(self._providers)

    def __iter__(self) -> Iterator[PaymentProvider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    def __contains__(self, method: object) -> bool:
        return isinstance(method, str) and self.resolve(method) is not None

    async def aclose(self) -> None:
        """Tear down every provider; one failing does not stop the others."""
        for code, provider in self._providers.items():
            try:
                await provider.aclose()
            except Exception:
                logger.exception("Failed to close provider %s", code)


ProviderFactory = Callable[[Settings, PaymentLedger, httpx.AsyncClient], PaymentProvider]


def _mywallet(settings: Settings, ledger: PaymentLedger, http: httpx.AsyncClient) -> PaymentProvider:
    return MyWalletProvider(
        http=http,
        ledger=ledger,
        base_url=settings.mywallet_base_url,
        username=settings.mywallet_username,
        password=settings.mywallet_password,
    )


PROVIDER_FACTORIES: dict[str, ProviderFactory] = {
    PaymentMethod.MPESA.value: lambda s, ledger, http: DelayedSettlementProvider(
        "mpesa", s.mpesa_settlement_seconds, fixed_balance("1234.56")
    ),
    PaymentMethod.ECOCASH.value: lambda s, ledger, http: DelayedSettlementProvider(
        "ecocash", s.ecocash_settlement_seconds, fixed_balance("2000.00")
    ),
    PaymentMethod.CPAY.value: lambda s, ledger, http: DelayedSettlementProvider(
        "cpay", s.cpay_settlement_seconds, hashed_balance(5000, "50")
    ),
    PaymentMethod.KHETSI.value: lambda s, ledger, http: DelayedSettlementProvider(
        "khetsi", s.khetsi_settlement_seconds, hashed_balance(8000, "75")
    ),
    PaymentMethod.EFT.value: lambda s, ledger, http: DelayedSettlementProvider(
        "eft", s.eft_settlement_seconds, fixed_balance("5000.00")
    ),
    PaymentMethod.CARD.value: lambda s, ledger, http: InstantSettlementProvider("card"),
    PaymentMethod.MYWALLET.value: _mywallet,
}


def build_registry(
    settings: Settings,
    ledger: PaymentLedger,
    http: httpx.AsyncClient,
) -> ProviderRegistry:
    """
    Instantiate one provider per enabled method code.

    Args:
        settings: Application settings (enabled methods, delays, credentials).
        ledger: Shared payment ledger (used by MyWallet for its session cache).
        http: Shared outbound HTTP client with the gateway timeout applied.

    Returns:
        ProviderRegistry containing only the enabled, known methods.
    """
    providers: dict[str, PaymentProvider] = {}
    for raw in settings.enabled_methods:
        code = raw.strip().lower()
        factory = PROVIDER_FACTORIES.get(code)
        if factory is None:
            logger.warning("Ignoring unknown payment method in configuration: %r", raw)
            continue
        if code in providers:
            continue
        providers[code] = factory(settings, ledger, http)

    logger.info("Provider registry built: %s", ", ".join(providers) or "none")
    return ProviderRegistry(providers)

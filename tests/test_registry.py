"""Tests for the provider registry and the wallet catalog."""

import httpx
import pytest
import pytest_asyncio

from app.config import Settings
from app.providers.mywallet import MyWalletProvider
from app.providers.simulated import DelayedSettlementProvider, InstantSettlementProvider
from app.routing.catalog import WALLET_CATALOG
from app.routing.registry import ProviderRegistry, build_registry


@pytest_asyncio.fixture
async def http():
    async with httpx.AsyncClient() as client:
        yield client


class TestResolve:
    def test_case_insensitive(self):
        card = InstantSettlementProvider("card")
        registry = ProviderRegistry({"card": card})
        assert registry.resolve("card") is card
        assert registry.resolve("CARD") is card
        assert registry.resolve(" Card ") is card

    def test_unknown_code_absent(self):
        registry = ProviderRegistry({"card": InstantSettlementProvider("card")})
        assert registry.resolve("bitcoin") is None
        assert "bitcoin" not in registry
        assert len(registry) == 1

    def test_blank_method(self):
        registry = ProviderRegistry({"card": InstantSettlementProvider("card")})
        assert registry.resolve(None) is None
        assert registry.resolve("  ") is None

    def test_keys_normalized(self):
        registry = ProviderRegistry({"EcoCash": DelayedSettlementProvider("ecocash", 1.0)})
        assert registry.codes() == ["ecocash"]


class TestBuildRegistry:
    @pytest.mark.asyncio
    async def test_all_rails_enabled_by_default(self, ledger, http):
        registry = build_registry(Settings(), ledger, http)
        assert sorted(registry.codes()) == sorted(w["code"] for w in WALLET_CATALOG)
        assert isinstance(registry.resolve("card"), InstantSettlementProvider)
        assert isinstance(registry.resolve("mywallet"), MyWalletProvider)
        assert isinstance(registry.resolve("eft"), DelayedSettlementProvider)

    @pytest.mark.asyncio
    async def test_only_enabled_methods(self, ledger, http):
        settings = Settings(enabled_methods=["Card", "ecocash"])
        registry = build_registry(settings, ledger, http)
        assert sorted(registry.codes()) == ["card", "ecocash"]
        assert registry.resolve("mpesa") is None

    @pytest.mark.asyncio
    async def test_unknown_configured_code_skipped(self, ledger, http):
        settings = Settings(enabled_methods=["card", "paypal"])
        registry = build_registry(settings, ledger, http)
        assert registry.codes() == ["card"]

    @pytest.mark.asyncio
    async def test_settlement_delays_from_settings(self, ledger, http):
        settings = Settings(enabled_methods=["eft"], eft_settlement_seconds=3.5)
        registry = build_registry(settings, ledger, http)
        assert registry.resolve("eft").settlement_delay == 3.5


class TestCatalog:
    def test_catalog_entries(self):
        codes = {w["code"]: w for w in WALLET_CATALOG}
        assert codes["mpesa"]["name"] == "M-Pesa"
        assert codes["card"]["country"] == "International"
        assert codes["eft"]["country"] == "Lesotho"
        assert len(WALLET_CATALOG) == 7

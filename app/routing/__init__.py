from app.routing.catalog import WALLET_CATALOG
from app.routing.registry import ProviderRegistry, build_registry

__all__ = ["WALLET_CATALOG", "ProviderRegistry", "build_registry"]

"""
Catalog of supported payment rails.

Static list of the wallets and banking rails the aggregator advertises to
callers. It is configuration, not derived from the registry: a rail can be
listed here while disabled in ``settings.enabled_methods``.
"""

from typing import TypedDict


class WalletInfo(TypedDict):
    """Public description of a payment rail."""

    code: str  # Method code used in payment requests
    name: str  # Display name
    country: str


WALLET_CATALOG: list[WalletInfo] = [
    # ─── Mobile money ──────────────────────────────────────────────────
    {"code": "mpesa", "name": "M-Pesa", "country": "Lesotho"},
    {"code": "ecocash", "name": "EcoCash", "country": "Lesotho"},
    # ─── Wallet APIs ───────────────────────────────────────────────────
    {"code": "mywallet", "name": "MyWallet", "country": "Lesotho"},
    {"code": "cpay", "name": "CPay", "country": "Lesotho"},
    {"code": "khetsi", "name": "Khetsi", "country": "Lesotho"},
    # ─── Banking ───────────────────────────────────────────────────────
    {"code": "eft", "name": "Bank EFT", "country": "Lesotho"},
    {"code": "card", "name": "Card", "country": "International"},
]

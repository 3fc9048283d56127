"""Enumerations for the payment aggregator domain model."""

from enum import Enum
from typing import Optional


class PaymentStatus(str, Enum):
    """Lifecycle states for a payment. Only pending moves; the others are terminal."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


class PaymentMethod(str, Enum):
    """Supported payment rails."""

    MPESA = "mpesa"
    ECOCASH = "ecocash"
    MYWALLET = "mywallet"
    CPAY = "cpay"
    KHETSI = "khetsi"
    EFT = "eft"
    CARD = "card"


_SUCCESS_WORDS = {"success", "successful", "succeeded", "completed", "paid"}
_FAILURE_WORDS = {"failed", "failure", "declined", "rejected", "cancelled", "canceled", "error", "expired"}


def normalize_status(raw: Optional[str]) -> Optional[PaymentStatus]:
    """
    Map a remote status string onto the three local states.

    Returns None when the value is empty. Unrecognized values map to
    PENDING so the payment keeps being reconciled.
    """
    if raw is None:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    if value in _SUCCESS_WORDS:
        return PaymentStatus.SUCCESS
    if value in _FAILURE_WORDS:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING

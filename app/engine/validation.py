"""
One-time code validation for wallet authorizations.

The remote wallet authorizes a payment only with a code the customer
received out of band. The code is checked before any network call:
  1. It must be present
  2. It must be digits only
  3. It must be 4 to 8 digits long

Returns a structured result so the provider can record the rejection as
payment data instead of raising.
"""

from dataclasses import dataclass
from typing import Optional


OTP_MIN_LENGTH = 4
OTP_MAX_LENGTH = 8


@dataclass
class ValidationResult:
    """Result of a validation check."""

    valid: bool
    message: str = ""


def validate_otp(otp: Optional[str]) -> ValidationResult:
    """
    Check a caller-supplied one-time code.

    Args:
        otp: The code as received from the caller, possibly None.

    Returns:
        ValidationResult; ``message`` is the diagnostic when invalid.
    """
    code = (otp or "").strip()

    if not code:
        return ValidationResult(
            valid=False,
            message="MyWallet requires a one-time code (otp) to authorize the payment.",
        )

    # str.isdigit() accepts superscripts and other unicode digits
    if not (code.isascii() and code.isdigit()):
        return ValidationResult(
            valid=False,
            message="MyWallet one-time code must contain digits only.",
        )

    if not OTP_MIN_LENGTH <= len(code) <= OTP_MAX_LENGTH:
        return ValidationResult(
            valid=False,
            message=(
                f"MyWallet one-time code must be {OTP_MIN_LENGTH}-{OTP_MAX_LENGTH} digits long "
                f"(got {len(code)})."
            ),
        )

    return ValidationResult(valid=True)

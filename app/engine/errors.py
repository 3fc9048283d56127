"""
Exception types for the payment aggregator.

Only infrastructure-level faults travel as exceptions to the HTTP boundary
(unsupported method, unknown payment, store unavailable). Business-level
provider failures are converted to data (status=failed plus diagnostics)
inside the provider, so GatewayError never escapes a provider call.
"""

from typing import Optional


class AggregatorError(Exception):
    """Base exception for errors surfaced by the aggregator."""


class UnsupportedMethodError(AggregatorError):
    """No provider is registered for the requested payment method."""

    def __init__(self, method: Optional[str]):
        super().__init__(f"Unsupported payment method '{method}'")
        self.method = method


class PaymentNotFoundError(AggregatorError):
    """Neither the ledger nor any provider knows the payment id."""

    def __init__(self, payment_id: str):
        super().__init__(f"Payment not found: {payment_id}")
        self.payment_id = payment_id


class PersistenceError(AggregatorError):
    """The durable store could not be read or written."""


class ProviderError(Exception):
    """Base exception for payment provider faults."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayError(ProviderError):
    """
    A remote wallet step answered with a non-success response.

    The message keeps the HTTP status, reason phrase and raw body in the
    form operators grep for:

        MyWallet <operation> failed with <status> <reason>: <body>
    """

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ):
        super().__init__(message, status_code=status_code)
        self.operation = operation
        self.body = body

    @classmethod
    def from_response(cls, operation: str, status_code: int, reason: str, body: str) -> "GatewayError":
        return cls(
            operation,
            f"MyWallet {operation} failed with {status_code} {reason}: {body}",
            status_code=status_code,
            body=body,
        )

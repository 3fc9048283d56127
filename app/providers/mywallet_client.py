"""
MyWallet wire protocol.

Four JSON POST endpoints under the configured base URL:

  login        {email, password}                          -> {token} | {data: {token}}
  checkUser    {recipientCell, amount, reference, ...}    -> {data: {token}}
  payMerchant  {token, otp}                               -> {status | status_code, reference, message?, ...}
  checkStatus  {reference}                                -> {status | state}, optionally under data

Everything after login carries ``Authorization: Bearer <session token>``.
Non-2xx answers and missing tokens raise GatewayError; transport failures
surface as httpx.HTTPError. There is no retry policy.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

import httpx

from app.engine.errors import GatewayError


@dataclass
class PayMerchantResult:
    """Parsed payMerchant answer."""

    status: str  # raw remote status, normalized by the provider
    reference: Optional[str] = None
    errors: list[str] = field(default_factory=list)


def _get_str(obj: Any, key: str) -> Optional[str]:
    if isinstance(obj, dict):
        value = obj.get(key)
        if isinstance(value, str):
            return value
    return None


def _get_int(obj: Any, key: str) -> Optional[int]:
    if isinstance(obj, dict):
        value = obj.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _get_data(obj: Any) -> Optional[dict]:
    if isinstance(obj, dict) and isinstance(obj.get("data"), dict):
        return obj["data"]
    return None


def extract_messages(obj: Any) -> list[str]:
    """Collect ``message``, ``error`` and ``errors`` diagnostics from a JSON object."""
    messages: list[str] = []
    if not isinstance(obj, dict):
        return messages

    message = _get_str(obj, "message")
    if message and message.strip():
        messages.append(message)

    error = _get_str(obj, "error")
    if error and error.strip() and error != message:
        messages.append(error)

    errors = obj.get("errors")
    if isinstance(errors, list):
        messages.extend(e for e in errors if isinstance(e, str) and e.strip())
    elif isinstance(errors, str) and errors.strip():
        messages.append(errors)

    return messages


class MyWalletClient:
    """Stateless wrapper around the MyWallet HTTP endpoints."""

    def __init__(self, http: httpx.AsyncClient, base_url: str):
        self._http = http
        self._base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path}"

    async def _post(self, operation: str, payload: dict, bearer: Optional[str] = None) -> Any:
        headers = {"Authorization": f"Bearer {bearer}"} if bearer else None
        response = await self._http.post(self._url(operation), json=payload, headers=headers)
        if not response.is_success:
            error = GatewayError.from_response(
                operation,
                response.status_code,
                response.reason_phrase,
                response.text,
            )
            raise error
        return response.json()

    async def login(self, username: str, password: str) -> str:
        """Exchange merchant credentials for a bearer session token."""
        body = await self._post("login", {"email": username, "password": password})
        token = _get_str(body, "token") or _get_str(_get_data(body), "token")
        if not token:
            raise GatewayError("login", "No token returned from MyWallet login.")
        return token

    async def check_user(
        self,
        session_token: str,
        recipient_cell: Optional[str],
        amount: Decimal,
        reference: str,
    ) -> str:
        """Register the recipient and amount; returns the payment authorization token."""
        payload = {
            "recipientCell": recipient_cell,
            "amount": float(amount),
            "reference": reference,
            "mywalletUser": False,
            "mywalletAccount": None,
            "commission": 0,
        }
        body = await self._post("checkUser", payload, bearer=session_token)
        token = _get_str(_get_data(body), "token")
        if not token:
            raise GatewayError("checkUser", "MyWallet checkUser did not return a token.")
        return token

    async def pay_merchant(self, session_token: str, payment_token: str, otp: str) -> PayMerchantResult:
        """
        Authorize the prepared payment with the customer's one-time code.

        A ``status`` string wins; without one, ``status_code == 200`` means
        success. A nested ``data`` object may override the status and add
        diagnostics and the reference.
        """
        body = await self._post("payMerchant", {"token": payment_token, "otp": otp}, bearer=session_token)

        status_code = _get_int(body, "status_code")
        status = _get_str(body, "status") or ("success" if status_code == 200 else "failed")
        errors = extract_messages(body)
        reference = _get_str(body, "reference")

        data = _get_data(body)
        if data is not None:
            status = _get_str(data, "status") or status
            errors.extend(extract_messages(data))
            reference = reference or _get_str(data, "reference")

        return PayMerchantResult(status=status, reference=reference, errors=errors)

    async def check_status(self, session_token: str, reference: str) -> Optional[str]:
        """Remote status for a reference (``status`` or ``state``, top level or under data)."""
        body = await self._post("checkStatus", {"reference": reference}, bearer=session_token)
        data = _get_data(body)
        return (
            _get_str(body, "status")
            or _get_str(body, "state")
            or _get_str(data, "status")
            or _get_str(data, "state")
        )

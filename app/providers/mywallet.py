"""
MyWallet remote-wallet provider.

Per payment the state machine is pending -> success | failed, driven by
the remote exchange:

  1. login        merchant credentials -> session token
  2. checkUser    recipient + amount + reference -> payment token
  3. payMerchant  payment token + customer one-time code -> status
  4. checkStatus  later, from get_payment, while still pending

Steps 1-3 are fatal for the attempt: any failure becomes status=failed with
the gateway diagnostic. Step 4 is best effort: failures are logged and the
payment keeps its last known status.

The session cache (provider reference, session token, last status check) is
persisted with the payment on create and again after every successful
reconciliation, so after a restart polling resumes with the cached token
instead of a fresh login.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx

from app.engine.errors import GatewayError
from app.engine.ledger import PaymentLedger, SessionCacheEntry
from app.engine.validation import validate_otp
from app.models.enums import PaymentMethod, PaymentStatus, normalize_status
from app.providers.base import PaymentProvider, PaymentRequest, PaymentResponse, new_payment_id, utcnow
from app.providers.mywallet_client import MyWalletClient, PayMerchantResult

logger = logging.getLogger("payment_aggregator.mywallet")

NON_SUCCESS_DIAGNOSTIC = "MyWallet payMerchant returned a non-success status."
MISSING_CONFIG_DIAGNOSTIC = "MyWallet configuration missing."


@dataclass
class _TrackedPayment:
    payment: PaymentResponse
    session: SessionCacheEntry


class MyWalletProvider(PaymentProvider):
    """Provider for the MyWallet merchant API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        ledger: PaymentLedger,
        base_url: str,
        username: str,
        password: str,
    ):
        self._client = MyWalletClient(http, base_url)
        self._ledger = ledger
        self._base_url = base_url
        self._username = username
        self._password = password
        self._tracked: dict[str, _TrackedPayment] = {}

    @property
    def name(self) -> str:
        return PaymentMethod.MYWALLET.value

    @property
    def is_configured(self) -> bool:
        return all(v and v.strip() for v in (self._base_url, self._username, self._password))

    async def create_payment(self, request: PaymentRequest) -> PaymentResponse:
        payment_id = new_payment_id(self.name)
        reference = request.reference or payment_id

        payment = PaymentResponse.pending_for(payment_id, request, self.name)
        payment.provider_reference = reference
        tracked = _TrackedPayment(
            payment=payment,
            session=SessionCacheEntry(payment_id=payment_id, provider_reference=reference),
        )
        self._tracked[payment_id] = tracked

        otp_check = validate_otp(request.otp)
        if not otp_check.valid:
            logger.warning("MyWallet payment %s rejected: %s", payment_id, otp_check.message)
            payment.mark_failed(otp_check.message)
        elif not self.is_configured:
            logger.error("MyWallet payment %s failed: %s", payment_id, MISSING_CONFIG_DIAGNOSTIC)
            payment.mark_failed(MISSING_CONFIG_DIAGNOSTIC)
        else:
            await self._authorize(tracked, request, reference)

        await self._ledger.save_payment_with_session(payment, tracked.session)
        logger.info(
            "MyWallet payment %s created status=%s reference=%s",
            payment_id,
            payment.status.value,
            payment.provider_reference,
        )
        return payment

    async def _authorize(self, tracked: _TrackedPayment, request: PaymentRequest, reference: str) -> None:
        """Run login -> checkUser -> payMerchant, recording any failure on the payment."""
        payment = tracked.payment
        try:
            session_token = await self._client.login(self._username, self._password)
            tracked.session.session_token = session_token

            payment_token = await self._client.check_user(
                session_token,
                recipient_cell=request.customer.phone or None,
                amount=request.amount,
                reference=reference,
            )
            result = await self._client.pay_merchant(session_token, payment_token, request.otp.strip())

        except GatewayError as e:
            logger.error("MyWallet payment creation failed for reference %s: %s", reference, e)
            payment.mark_failed(str(e))
            return

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("MyWallet request failed for reference %s: %r", reference, e)
            payment.mark_failed(f"MyWallet request failed: {str(e) or type(e).__name__}")
            return

        except ValueError as e:
            # Malformed JSON from the gateway
            logger.error("MyWallet returned an unreadable response for reference %s: %s", reference, e)
            payment.mark_failed(f"MyWallet returned an unreadable response: {e}")
            return

        self._apply_pay_result(tracked, result, reference)

    def _apply_pay_result(self, tracked: _TrackedPayment, result: PayMerchantResult, reference: str) -> None:
        payment = tracked.payment
        payment.provider_reference = result.reference or reference
        tracked.session.provider_reference = payment.provider_reference

        status = normalize_status(result.status) or PaymentStatus.PENDING
        if status is PaymentStatus.SUCCESS:
            payment.mark_success()
            payment.errors.extend(result.errors)
        elif status is PaymentStatus.FAILED:
            payment.mark_failed(*(result.errors or [NON_SUCCESS_DIAGNOSTIC]))
        else:
            payment.errors.extend(result.errors)

    async def get_payment(self, payment_id: str) -> Optional[PaymentResponse]:
        tracked = self._tracked.get(payment_id) or await self._restore(payment_id)
        if tracked is None:
            return None

        payment = tracked.payment
        if payment.status is PaymentStatus.PENDING and payment.provider_reference:
            if await self._reconcile(tracked):
                await self._ledger.save_session_entry(tracked.session)
        return payment

    async def _restore(self, payment_id: str) -> Optional[_TrackedPayment]:
        """Rebuild tracking state from the ledger after a restart."""
        payment = await self._ledger.get_payment(payment_id)
        if payment is None or payment.payment_method.lower() != self.name:
            return None

        session = await self._ledger.get_session_entry(payment_id)
        if session is None:
            session = SessionCacheEntry(payment_id=payment_id, provider_reference=payment.provider_reference)
        if not payment.provider_reference:
            payment.provider_reference = session.provider_reference

        tracked = _TrackedPayment(payment=payment, session=session)
        self._tracked[payment_id] = tracked
        logger.info(
            "MyWallet payment %s restored from ledger (cached token: %s)",
            payment_id,
            "yes" if session.session_token else "no",
        )
        return tracked

    async def _reconcile(self, tracked: _TrackedPayment) -> bool:
        """
        Refresh a pending payment from checkStatus.

        Returns True when the remote call went through and the session
        entry should be persisted. Failures are swallowed.
        """
        payment = tracked.payment
        session = tracked.session
        try:
            session_token = session.session_token
            if not session_token:
                session_token = await self._client.login(self._username, self._password)
            remote_status = await self._client.check_status(session_token, payment.provider_reference)

        except GatewayError as e:
            logger.warning("MyWallet reconciliation failed for %s: %s", payment.id, e)
            if e.status_code == 401 and session.session_token:
                # Expired token: the next reconciliation logs in again
                session.session_token = None
                return True
            return False

        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning("MyWallet reconciliation failed for %s: %r", payment.id, e)
            return False

        session.session_token = session_token
        session.last_status_check = utcnow()

        status = normalize_status(remote_status)
        if status is PaymentStatus.SUCCESS:
            payment.mark_success()
        elif status is PaymentStatus.FAILED:
            payment.mark_failed(f"MyWallet reported status '{remote_status}'.")

        if status is not None and status is not PaymentStatus.PENDING:
            logger.info("MyWallet payment %s reconciled to %s", payment.id, payment.status.value)
        return True

    def evict(self, payment_id: str) -> None:
        self._tracked.pop(payment_id, None)

    async def get_balance(self, account_id: str) -> Optional[Decimal]:
        # MyWallet exposes no balance endpoint
        return None

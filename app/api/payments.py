"""
Payment endpoints.

POST /payments       — Create a payment on the requested rail.
GET  /payments       — List every recorded payment, newest first.
GET  /payments/{id}  — Current status (refreshed from the provider when pending).
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from app.engine.aggregator import PaymentAggregator
from app.engine.errors import PaymentNotFoundError, PersistenceError, UnsupportedMethodError
from app.models.enums import PaymentStatus
from app.providers.base import CustomerInfo, PaymentRequest, PaymentResponse

router = APIRouter(prefix="/payments", tags=["payments"])


def get_aggregator(request: Request) -> PaymentAggregator:
    return request.app.state.aggregator


class CustomerIn(BaseModel):
    phone: str = ""
    name: Optional[str] = None


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    currency: str = Field("LSL", min_length=3, max_length=3)
    payment_method: str = Field(min_length=1)
    merchant_id: str = ""
    customer: CustomerIn = Field(default_factory=CustomerIn)
    reference: Optional[str] = None
    otp: Optional[str] = Field(None, description="One-time code (mywallet only)")
    callback_url: Optional[str] = None

    def to_request(self) -> PaymentRequest:
        return PaymentRequest(
            amount=self.amount,
            currency=self.currency.upper(),
            payment_method=self.payment_method,
            merchant_id=self.merchant_id,
            customer=CustomerInfo(phone=self.customer.phone, name=self.customer.name),
            reference=self.reference,
            otp=self.otp,
            callback_url=self.callback_url,
        )


class PaymentOut(BaseModel):
    id: str
    status: str
    amount: float
    currency: str
    payment_method: str
    created_at: Optional[str]
    completed_at: Optional[str]
    errors: list[str]
    merchant_id: str
    customer_phone: Optional[str]
    provider_reference: str


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _payment_to_out(p: PaymentResponse) -> PaymentOut:
    return PaymentOut(
        id=p.id,
        status=p.status.value,
        amount=float(p.amount),
        currency=p.currency,
        payment_method=p.payment_method,
        created_at=_iso(p.created_at),
        completed_at=_iso(p.completed_at),
        errors=list(p.errors),
        merchant_id=p.merchant_id,
        customer_phone=p.customer_phone,
        provider_reference=p.provider_reference,
    )


@router.post("", response_model=PaymentOut, status_code=201)
async def create_payment(
    body: PaymentCreate,
    request: Request,
    response: Response,
    aggregator: PaymentAggregator = Depends(get_aggregator),
):
    """
    Create a payment.

    201 when the rail settled it, 502 (with the payment body) when the
    provider reports anything other than success, 400 for an unknown method.
    """
    try:
        payment = await aggregator.create_payment(body.to_request())
    except UnsupportedMethodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if payment.status is not PaymentStatus.SUCCESS:
        response.status_code = 502
    else:
        response.headers["Location"] = str(request.url_for("get_payment", payment_id=payment.id))
    return _payment_to_out(payment)


@router.get("", response_model=list[PaymentOut])
async def list_payments(aggregator: PaymentAggregator = Depends(get_aggregator)):
    """List every payment created through the aggregator, newest first."""
    try:
        payments = await aggregator.get_all_payments()
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return [_payment_to_out(p) for p in payments]


@router.get("/{payment_id}", response_model=PaymentOut)
async def get_payment(payment_id: str, aggregator: PaymentAggregator = Depends(get_aggregator)):
    """Get a single payment, reconciling with the provider while pending."""
    try:
        payment = await aggregator.get_payment(payment_id)
    except PaymentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return _payment_to_out(payment)

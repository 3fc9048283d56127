"""Liveness endpoint."""

from fastapi import APIRouter, Depends

from app.api.payments import get_aggregator
from app.engine.aggregator import PaymentAggregator

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(aggregator: PaymentAggregator = Depends(get_aggregator)):
    return {"status": "ok", "methods": aggregator.registry.codes()}

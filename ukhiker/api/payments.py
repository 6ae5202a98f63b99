# /ukhiker/api/payments.py
"""Checkout, Stripe webhook and payment verification endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ukhiker.api.deps import get_current_user
from ukhiker.core.database import get_db
from ukhiker.models.payment import Payment
from ukhiker.models.trek import Trek
from ukhiker.schemas.payments import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentHistoryResponse,
    PaymentResponse,
    SessionSummary,
    VerifyResponse,
)
from ukhiker.schemas.treks import TrekSummary
from ukhiker.services import payment_service
from ukhiker.services.payment_gateway import StripeGateway, get_payment_gateway

router = APIRouter(prefix="/api/payments", tags=["payments"])


def _payment_response(payment: Payment, trek: Optional[Trek] = None) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        user_id=payment.user_id,
        trek_id=payment.trek_id,
        stripe_session_id=payment.stripe_session_id,
        amount=(payment.amount_cents or 0) / 100,
        currency=payment.currency,
        status=payment.status,
        quantity=payment.quantity,
        created_at=payment.created_at,
        paid_at=payment.paid_at,
        trek=TrekSummary.model_validate(trek) if trek else None,
    )


# ─────────────────────────────────────────────
# ENDPOINTS
# ─────────────────────────────────────────────

@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout_session(
        req: CheckoutRequest,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
        gateway: StripeGateway = Depends(get_payment_gateway),
):
    created = await payment_service.create_checkout(db, gateway, req.trek_id, req.quantity, user["id"])
    return CheckoutResponse(session_id=created.session_id, url=created.url)


@router.post("/webhook")
async def stripe_webhook(
        request: Request,
        db: AsyncSession = Depends(get_db),
        gateway: StripeGateway = Depends(get_payment_gateway),
):
    """Stripe webhook; the signature covers the raw bytes, so nothing may parse the body first."""
    payload = await request.body()
    event = gateway.verify_webhook_signature(payload, request.headers.get("stripe-signature"))
    await payment_service.handle_webhook_event(db, event)
    return {"received": True}


@router.get("/history", response_model=PaymentHistoryResponse)
async def payment_history(
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
):
    rows = await payment_service.list_history(db, user["id"])
    return PaymentHistoryResponse(data=[_payment_response(p, t) for p, t in rows])


@router.get("/verify/{session_id}", response_model=VerifyResponse, response_model_exclude_none=True)
async def verify_payment(
        session_id: str,
        user=Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
        gateway: StripeGateway = Depends(get_payment_gateway),
):
    result = await payment_service.verify_session(db, gateway, session_id, user["id"])

    if result.payment is not None:
        trek = await db.get(Trek, result.payment.trek_id)
        return VerifyResponse(verified=result.verified, payment=_payment_response(result.payment, trek))

    session = result.session
    return VerifyResponse(
        verified=False,
        session=SessionSummary(id=session.id, status=session.status, payment_status=session.payment_status),
    )

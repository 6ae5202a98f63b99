# FILE: ukhiker/services/payment_service.py
"""Payment ledger and its reconciliation with Stripe.

The ledger holds at most one row per checkout session. Both writers (the
webhook and the verify fallback) go through ``record_session``, which relies
on the unique index on ``stripe_session_id``: insert, and on conflict fetch
the row that won.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ukhiker.core.config import CHECKOUT_CURRENCY
from ukhiker.core.errors import NotFound, ValidationError
from ukhiker.models.payment import Payment
from ukhiker.models.trek import Trek
from ukhiker.services.payment_gateway import CheckoutSessionState, CreatedCheckoutSession, StripeGateway
from ukhiker.services.trek_service import get_trek

logger = logging.getLogger("ukhiker.payments")

EVENT_SESSION_COMPLETED = "checkout.session.completed"
EVENT_ASYNC_SUCCEEDED = "checkout.session.async_payment_succeeded"
EVENT_ASYNC_FAILED = "checkout.session.async_payment_failed"

HANDLED_EVENTS = {EVENT_SESSION_COMPLETED, EVENT_ASYNC_SUCCEEDED, EVENT_ASYNC_FAILED}


@dataclass
class VerifyResult:
    verified: bool
    payment: Optional[Payment] = None
    session: Optional[CheckoutSessionState] = None


def _quantity(metadata: Dict[str, Any]) -> int:
    try:
        return max(1, int(metadata.get("quantity") or 1))
    except (TypeError, ValueError):
        return 1


async def create_checkout(
        db: AsyncSession,
        gateway: StripeGateway,
        trek_id: Optional[str],
        quantity: int,
        user_id: str,
) -> CreatedCheckoutSession:
    if not trek_id:
        raise ValidationError("Trek ID is required")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    trek = await get_trek(db, trek_id)
    if trek.price is None:
        raise ValidationError("Trek is not available for booking")

    return await gateway.create_checkout_session(trek, quantity, user_id)


async def get_payment_by_session(db: AsyncSession, session_id: str) -> Optional[Payment]:
    result = await db.execute(select(Payment).where(Payment.stripe_session_id == session_id))
    return result.scalar_one_or_none()


async def _apply_status(db: AsyncSession, payment: Payment, status: str) -> Payment:
    # completed is terminal
    if payment.status == status or payment.status == "completed":
        return payment
    payment.status = status
    if status == "completed":
        payment.paid_at = datetime.utcnow()
    await db.commit()
    return payment


async def record_session(
        db: AsyncSession,
        session: CheckoutSessionState,
        status: str,
        user_id: Optional[str] = None,
) -> Tuple[Payment, bool]:
    """Write the ledger row for ``session``; returns ``(payment, created)``."""
    metadata = session.metadata or {}
    owner = user_id or metadata.get("userId")
    trek_id = metadata.get("trekId")
    if not owner or not trek_id:
        raise ValidationError("Checkout session is missing booking metadata")

    now = datetime.utcnow()
    payment = Payment(
        id=str(uuid.uuid4()),
        user_id=owner,
        trek_id=trek_id,
        stripe_session_id=session.id,
        amount_cents=int(session.amount_total or 0),
        currency=(session.currency or CHECKOUT_CURRENCY).upper(),
        status=status,
        quantity=_quantity(metadata),
        created_at=now,
        paid_at=now if status == "completed" else None,
        raw=metadata,
    )
    db.add(payment)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await get_payment_by_session(db, session.id)
        if existing is None:
            raise
        logger.info(f"Session {session.id} already recorded as payment {existing.id}")
        return await _apply_status(db, existing, status), False

    logger.info(f"Recorded payment {payment.id} for session {session.id} ({status})")
    return payment, True


async def handle_webhook_event(db: AsyncSession, event: Dict[str, Any]) -> Optional[Payment]:
    event_type = event.get("type")
    if event_type not in HANDLED_EVENTS:
        logger.debug(f"Ignoring webhook event {event_type}")
        return None

    obj = (event.get("data") or {}).get("object") or {}
    session = CheckoutSessionState.from_stripe(obj)
    if not session.id or not session.metadata.get("userId") or not session.metadata.get("trekId"):
        logger.warning(f"Webhook {event_type} for session {session.id} has no booking metadata, skipping")
        return None

    if event_type == EVENT_SESSION_COMPLETED:
        # delayed payment methods complete the session before the money arrives
        status = "completed" if session.is_paid else "pending"
    elif event_type == EVENT_ASYNC_SUCCEEDED:
        status = "completed"
    else:
        status = "failed"

    payment, _ = await record_session(db, session, status)
    return payment


async def verify_session(
        db: AsyncSession,
        gateway: StripeGateway,
        session_id: str,
        user_id: str,
) -> VerifyResult:
    # The ledger is the source of truth once a row exists
    payment = await get_payment_by_session(db, session_id)
    if payment:
        if payment.user_id != user_id:
            raise NotFound("Payment not found")
        return VerifyResult(verified=payment.status == "completed", payment=payment)

    session = await gateway.retrieve_session(session_id)
    owner = session.metadata.get("userId")
    if owner and owner != user_id:
        raise NotFound("Payment not found")

    if session.is_paid:
        # webhook missed or not delivered yet
        payment, created = await record_session(db, session, "completed", user_id=user_id)
        if created:
            logger.info(f"Payment {payment.id} materialised from verify for session {session_id}")
        return VerifyResult(verified=payment.status == "completed", payment=payment)

    return VerifyResult(verified=False, session=session)


async def list_history(db: AsyncSession, user_id: str) -> List[Tuple[Payment, Optional[Trek]]]:
    rows = await db.execute(
        select(Payment, Trek)
        .outerjoin(Trek, Trek.id == Payment.trek_id)
        .where(Payment.user_id == user_id)
        .order_by(Payment.created_at.desc())
    )
    return [(p, t) for p, t in rows.all()]

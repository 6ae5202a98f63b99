# /ukhiker/models/payment.py
from datetime import datetime
from typing import Optional, Any
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, DateTime, JSON

from ukhiker.core.database import Base


PAYMENT_STATUSES = ("completed", "pending", "failed")


class Payment(Base):
    """Ledger of Stripe checkout sessions that produced (or attempted) a payment."""
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # Weak references: no foreign keys, deleting a trek or user leaves the ledger intact
    user_id: Mapped[str] = mapped_column(String(36), index=True)
    trek_id: Mapped[str] = mapped_column(String(36), index=True)

    # One row per checkout session
    stripe_session_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)

    # Amount in minor units (pence)
    amount_cents: Mapped[int] = mapped_column(Integer, default=0)

    currency: Mapped[str] = mapped_column(String(3), default="GBP")

    # Status: completed, pending, failed
    status: Mapped[str] = mapped_column(String(20), default="pending")

    quantity: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Session metadata as sent to Stripe (userId, trekId, quantity)
    raw: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

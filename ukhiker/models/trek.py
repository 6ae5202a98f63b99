# /ukhiker/models/trek.py
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Float, DateTime

from ukhiker.core.database import Base


class Trek(Base):
    """Trek listings shown in the catalog."""
    __tablename__ = "treks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    title: Mapped[str] = mapped_column(String(200))
    location: Mapped[str] = mapped_column(String(200))
    image_url: Mapped[str] = mapped_column(String(500))
    pdf_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Price per person in major units (e.g. 49.99 GBP)
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # easy, moderate, hard ... free text
    difficulty: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    # Departure date, naive UTC
    date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

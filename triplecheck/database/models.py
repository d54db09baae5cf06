from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from triplecheck.database.base import Base
from triplecheck.schemas import VerificationStatus


class Property(Base):
    """Listings as stored by the listing service"""
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str] = mapped_column(Text, default="")
    location: Mapped[str] = mapped_column(String(255), default="", index=True)
    price: Mapped[Optional[float]] = mapped_column(Float)

    bedrooms: Mapped[Optional[float]] = mapped_column(Float)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float)
    square_footage: Mapped[Optional[float]] = mapped_column(Float)
    amenities: Mapped[List[str]] = mapped_column(JSON, default=list)
    year_built: Mapped[Optional[int]] = mapped_column(Integer)

    verification_status: Mapped[str] = mapped_column(
        String(20), default=VerificationStatus.PENDING.value, index=True
    )
    ai_verification_results: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    trust_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    is_fraudulent: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

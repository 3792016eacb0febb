"""Lodge model definition."""

from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class LodgeType(str, Enum):
    """Accommodation categories."""
    LUXURY = "Luxury"
    MID_RANGE = "Mid-Range"
    BUDGET = "Budget"
    TENTED_CAMP = "Tented Camp"
    ECO_LODGE = "Eco-Lodge"


class Lodge(Base):
    """Accommodation inside or near a park."""

    __tablename__ = "lodges"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Ownership
    park_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("parks.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    owner_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Lodge details
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    lodge_type: Mapped[LodgeType] = mapped_column(String(20), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Nightly price in minor units
    price_per_night_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    price_per_night_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    rating_average: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_lodge_capacity_positive"),
        CheckConstraint("price_per_night_amount >= 0", name="ck_lodge_price_non_negative"),
        CheckConstraint("length(price_per_night_currency) = 3", name="ck_lodge_price_currency_length"),
        CheckConstraint("rating_average >= 0 AND rating_average <= 5", name="ck_lodge_rating_average_range"),
    )

    def __repr__(self) -> str:
        return f"<Lodge(id={self.id}, name='{self.name}', type='{self.lodge_type}')>"

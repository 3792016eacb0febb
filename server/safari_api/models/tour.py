"""Tour and start-date model definitions."""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.clock import utcnow
from ..core.database import Base


DEFAULT_CANCELLATION_POLICY = "Free cancellation up to 24 hours before tour start"


class DifficultyLevel(str, Enum):
    """Physical difficulty of a tour."""
    EASY = "Easy"
    MODERATE = "Moderate"
    CHALLENGING = "Challenging"
    EXTREME = "Extreme"


class Tour(Base):
    """
    Tour offering run by a travel agency in a park.

    ``max_participants`` and ``current_participants`` together with the
    per-date ``TourStartDate.available_spots`` form the capacity ledger.
    """

    __tablename__ = "tours"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Ownership
    park_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("parks.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    agency_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Tour information
    title: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty_level: Mapped[DifficultyLevel] = mapped_column(
        String(20),
        nullable=False,
        default=DifficultyLevel.MODERATE
    )
    cancellation_policy: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default=DEFAULT_CANCELLATION_POLICY
    )

    # Price per participant in minor units
    price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    # Capacity
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    current_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Availability flags
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Aggregated review rating
    rating_average: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

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
        CheckConstraint("duration_days >= 1 AND duration_days <= 30", name="ck_tour_duration_range"),
        CheckConstraint("max_participants >= 1 AND max_participants <= 50", name="ck_tour_max_participants_range"),
        CheckConstraint("current_participants >= 0", name="ck_tour_current_participants_non_negative"),
        CheckConstraint(
            "current_participants <= max_participants",
            name="ck_tour_current_participants_lte_max"
        ),
        CheckConstraint("price_amount >= 0", name="ck_tour_price_amount_non_negative"),
        CheckConstraint("length(price_currency) = 3", name="ck_tour_price_currency_length"),
        CheckConstraint("rating_average >= 0 AND rating_average <= 5", name="ck_tour_rating_average_range"),
        CheckConstraint("rating_count >= 0", name="ck_tour_rating_count_non_negative"),
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    start_dates: Mapped[list["TourStartDate"]] = relationship(
        "TourStartDate",
        back_populates="tour",
        cascade="all, delete-orphan",
        order_by="TourStartDate.start_date",
        lazy="selectin"
    )

    @property
    def spots_remaining(self) -> int:
        return self.max_participants - self.current_participants

    @property
    def is_fully_booked(self) -> bool:
        return self.current_participants >= self.max_participants

    def find_start_date(self, day: date) -> Optional["TourStartDate"]:
        """Return the schedule entry for ``day`` or None."""
        for entry in self.start_dates:
            if entry.start_date == day:
                return entry
        return None

    def __repr__(self) -> str:
        return (
            f"<Tour(id={self.id}, title='{self.title}', "
            f"participants={self.current_participants}/{self.max_participants})>"
        )


class TourStartDate(Base):
    """Scheduled departure day of a tour with its own spot allotment."""

    __tablename__ = "tour_start_dates"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    available_spots: Mapped[int] = mapped_column(Integer, nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("available_spots >= 0", name="ck_tour_start_date_spots_non_negative"),
        UniqueConstraint("tour_id", "start_date", name="uq_tour_start_date_day"),
    )

    __mapper_args__ = {"version_id_col": version}

    tour: Mapped["Tour"] = relationship("Tour", back_populates="start_dates")

    def __repr__(self) -> str:
        return (
            f"<TourStartDate(tour_id={self.tour_id}, start_date={self.start_date}, "
            f"available_spots={self.available_spots})>"
        )

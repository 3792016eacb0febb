"""Capacity ledger entry model definition."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class LedgerReason(str, Enum):
    """Why a tour's capacity changed."""
    BOOKING_CREATED = "booking_created"
    BOOKING_CANCELLED = "booking_cancelled"
    START_DATE_ADDED = "start_date_added"
    START_DATE_REMOVED = "start_date_removed"
    MAXIMUM_LOWERED = "maximum_lowered"


class CapacityLedgerEntry(Base):
    """Audit record of a single capacity mutation on a tour."""

    __tablename__ = "capacity_ledger_entries"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    booking_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Adjustment details; delta is signed (negative when spots are consumed)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[LedgerReason] = mapped_column(String(32), nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)

    # Before/after values; spots are NULL when the start date does not exist on that side
    participants_before: Mapped[int] = mapped_column(Integer, nullable=False)
    participants_after: Mapped[int] = mapped_column(Integer, nullable=False)
    available_spots_before: Mapped[int | None] = mapped_column(Integer, nullable=True)
    available_spots_after: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True
    )

    __table_args__ = (
        CheckConstraint("length(actor) > 0", name="ck_capacity_ledger_actor_not_empty"),
        CheckConstraint("participants_before >= 0", name="ck_capacity_ledger_participants_before_non_negative"),
        CheckConstraint("participants_after >= 0", name="ck_capacity_ledger_participants_after_non_negative"),
        CheckConstraint(
            "available_spots_after IS NULL OR available_spots_after >= 0",
            name="ck_capacity_ledger_spots_after_non_negative"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<CapacityLedgerEntry(id={self.id}, tour_id={self.tour_id}, "
            f"delta={self.delta}, reason='{self.reason}', actor='{self.actor}')>"
        )

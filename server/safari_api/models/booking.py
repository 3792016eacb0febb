"""Booking model definition."""

from datetime import date, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, Uuid, event, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    """Payment status enumeration."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"
    CASH = "cash"


# One-way lifecycle; nothing returns to pending
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED}),
    BookingStatus.CANCELLED: frozenset({BookingStatus.REFUNDED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.REFUNDED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Return True if a booking in ``current`` may move to ``target``."""
    return BookingStatus(target) in ALLOWED_TRANSITIONS[BookingStatus(current)]


class Booking(Base):
    """Booking entity holding spots on a tour start date."""

    __tablename__ = "bookings"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    tour_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("tours.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Party composition; total_participants is maintained by the mapper hooks below
    adults: Mapped[int] = mapped_column(Integer, nullable=False)
    children: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    infants: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_participants: Mapped[int] = mapped_column(Integer, nullable=False)

    # Dates are calendar days
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Price in minor units
    total_price_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    total_price_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(String(20), nullable=True)

    special_requests: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Emergency contact
    emergency_contact_name: Mapped[str] = mapped_column(String(100), nullable=False)
    emergency_contact_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    emergency_contact_relationship: Mapped[str] = mapped_column(String(50), nullable=False)

    # Cancellation and refund
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    refund_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("adults >= 1 AND adults <= 20", name="ck_booking_adults_range"),
        CheckConstraint("children >= 0 AND children <= 20", name="ck_booking_children_range"),
        CheckConstraint("infants >= 0 AND infants <= 10", name="ck_booking_infants_range"),
        CheckConstraint(
            "total_participants = adults + children + infants",
            name="ck_booking_total_participants_sum"
        ),
        CheckConstraint("end_date >= start_date", name="ck_booking_end_after_start"),
        CheckConstraint("total_price_amount >= 0", name="ck_booking_total_price_non_negative"),
        CheckConstraint("refund_amount IS NULL OR refund_amount >= 0", name="ck_booking_refund_non_negative"),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def booking_reference(self) -> str:
        return f"NAP{self.id.hex[-8:].upper()}"

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, tour_id={self.tour_id}, start_date={self.start_date}, "
            f"participants={self.total_participants}, status={self.status})>"
        )


@event.listens_for(Booking, "before_insert")
@event.listens_for(Booking, "before_update")
def _recompute_total_participants(mapper, connection, target: Booking) -> None:
    target.total_participants = (target.adults or 0) + (target.children or 0) + (target.infants or 0)

"""Review and helpful-vote model definitions."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..core.clock import utcnow
from ..core.database import Base


SUB_SCORES = ("guide", "accommodation", "food", "value")


class Review(Base):
    """A tourist's review of a tour they booked."""

    __tablename__ = "reviews"

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
    booking_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Ratings
    overall: Mapped[int] = mapped_column(Integer, nullable=False)
    guide: Mapped[int | None] = mapped_column(Integer, nullable=True)
    accommodation: Mapped[int | None] = mapped_column(Integer, nullable=True)
    food: Mapped[int | None] = mapped_column(Integer, nullable=True)
    value: Mapped[int | None] = mapped_column(Integer, nullable=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    comment: Mapped[str] = mapped_column(String(1000), nullable=False)

    # Short highlight and drawback points
    pros: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    cons: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    helpful_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Response from the tour's agency
    response_text: Mapped[str | None] = mapped_column(String(500), nullable=True)
    responded_by: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

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
        CheckConstraint("overall >= 1 AND overall <= 5", name="ck_review_overall_range"),
        CheckConstraint("guide IS NULL OR (guide >= 1 AND guide <= 5)", name="ck_review_guide_range"),
        CheckConstraint(
            "accommodation IS NULL OR (accommodation >= 1 AND accommodation <= 5)",
            name="ck_review_accommodation_range"
        ),
        CheckConstraint("food IS NULL OR (food >= 1 AND food <= 5)", name="ck_review_food_range"),
        CheckConstraint("value IS NULL OR (value >= 1 AND value <= 5)", name="ck_review_value_range"),
        CheckConstraint("helpful_count >= 0", name="ck_review_helpful_count_non_negative"),
        UniqueConstraint("user_id", "tour_id", "booking_id", name="uq_review_user_tour_booking"),
    )

    @property
    def average_rating(self) -> float:
        """Mean of the overall score and every sub-score that was given."""
        scores = [self.overall] + [getattr(self, name) for name in SUB_SCORES]
        present = [score for score in scores if score is not None]
        return sum(present) / len(present)

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, tour_id={self.tour_id}, overall={self.overall})>"


class ReviewHelpfulVote(Base):
    """A user marking a review as helpful; one row per (review, user)."""

    __tablename__ = "review_helpful_votes"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    review_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("review_id", "user_id", name="uq_review_helpful_vote"),
    )

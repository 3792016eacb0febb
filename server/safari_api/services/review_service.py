"""Review service: reviews, helpful votes, agency responses and rating aggregation."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..core.clock import utcnow
from ..core.config import settings
from ..core.dependencies import CurrentUser
from ..core.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..core.locking import critical_section, park_lock_key, retry_on_version_conflict, tour_lock_key
from ..core.observability import metrics_collector
from ..models.booking import BookingStatus
from ..models.review import Review, ReviewHelpfulVote
from ..schemas.review import CreateReviewRequest
from .booking_service import BookingService
from .park_service import ParkService
from .rating import update_rating
from .tour_service import TourService

logger = logging.getLogger(__name__)


class ReviewService:
    """Service for review-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.booking_service = BookingService(db)
        self.park_service = ParkService(db)
        self.tour_service = TourService(db)

    async def get_existing_review(self, user_id: UUID, tour_id: UUID, booking_id: UUID) -> Optional[Review]:
        stmt = select(Review).where(
            Review.user_id == user_id,
            Review.tour_id == tour_id,
            Review.booking_id == booking_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_review(self, request: CreateReviewRequest, current_user: CurrentUser) -> Review:
        """
        Review a booked tour and fold the score into the tour and park ratings.

        The review insert and both rating updates commit together, under the
        tour's and then the park's critical section.

        Raises:
            NotFoundError: If the tour or booking does not exist
            AuthorizationError: If the booking belongs to another user
            ValidationError: If the booking is for a different tour
            ConflictError: If the booking was already reviewed
        """
        tour = await self.tour_service.get_tour_by_id_or_raise(request.tour_id)
        park_id = tour.park_id

        booking = await self.booking_service.get_booking_by_id_or_raise(request.booking_id)
        if booking.user_id != current_user.user_id:
            raise AuthorizationError(detail="You can only review your own bookings")
        if booking.tour_id != request.tour_id:
            raise ValidationError(
                detail="The booking is for a different tour",
                errors={"booking_id": str(request.booking_id), "tour_id": str(request.tour_id)}
            )
        is_verified = booking.status == BookingStatus.COMPLETED

        async def attempt() -> Review:
            async with critical_section(self.db, tour_lock_key(request.tour_id), park_lock_key(park_id)):
                existing = await self.get_existing_review(current_user.user_id, request.tour_id, request.booking_id)
                if existing:
                    raise ConflictError(
                        detail="This booking has already been reviewed",
                        conflicting_resource={"id": str(existing.id)}
                    )

                review = Review(
                    user_id=current_user.user_id,
                    tour_id=request.tour_id,
                    booking_id=request.booking_id,
                    overall=request.rating.overall,
                    guide=request.rating.guide,
                    accommodation=request.rating.accommodation,
                    food=request.rating.food,
                    value=request.rating.value,
                    title=request.title,
                    comment=request.comment,
                    pros=list(request.pros),
                    cons=list(request.cons),
                    is_verified=is_verified,
                )

                locked_tour = await self.tour_service.get_tour_by_id_or_raise(request.tour_id, refresh=True)
                update_rating(locked_tour, request.rating.overall)

                park = await self.park_service.get_park_by_id(park_id, refresh=True)
                if park is not None:
                    update_rating(park, request.rating.overall)

                self.db.add(review)
                await self.db.commit()
                return review

        try:
            review = await retry_on_version_conflict(attempt, "create_review")
        except StaleDataError:
            raise ConcurrentModificationError("tour", str(request.tour_id), settings.booking_retry_attempts)
        except IntegrityError:
            raise ConflictError(detail="This booking has already been reviewed")

        await self.db.refresh(review)
        metrics_collector.record_review_created()
        logger.info(
            "Review created successfully",
            extra={
                "review_id": str(review.id),
                "tour_id": str(request.tour_id),
                "overall": request.rating.overall
            }
        )
        return review

    async def get_review_by_id_or_raise(self, review_id: UUID) -> Review:
        result = await self.db.execute(
            select(Review).where(Review.id == review_id).execution_options(populate_existing=True)
        )
        review = result.scalar_one_or_none()
        if not review:
            logger.warning("Review not found", extra={"review_id": str(review_id)})
            raise NotFoundError(resource_type="review", resource_id=str(review_id))
        return review

    async def list_reviews_for_tour(self, tour_id: UUID) -> list[Review]:
        """Public reviews of a tour, newest first."""
        await self.tour_service.get_tour_by_id_or_raise(tour_id)

        stmt = (
            select(Review)
            .where(Review.tour_id == tour_id, Review.is_public.is_(True))
            .order_by(Review.created_at.desc(), Review.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_reviews_for_user(self, user_id: UUID) -> list[Review]:
        """Every review the user wrote, public or not, newest first."""
        stmt = (
            select(Review)
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _sync_helpful_count(self, review: Review) -> None:
        review.helpful_count = await self.db.scalar(
            select(func.count(ReviewHelpfulVote.id)).where(ReviewHelpfulVote.review_id == review.id)
        ) or 0

    async def mark_helpful(self, review_id: UUID, current_user: CurrentUser) -> Review:
        """Add the caller's helpful vote. Voting twice has no further effect."""
        review = await self.get_review_by_id_or_raise(review_id)

        existing = await self.db.scalar(
            select(ReviewHelpfulVote).where(
                ReviewHelpfulVote.review_id == review_id,
                ReviewHelpfulVote.user_id == current_user.user_id,
            )
        )
        if existing is None:
            self.db.add(ReviewHelpfulVote(review_id=review_id, user_id=current_user.user_id))
            try:
                await self.db.flush()
            except IntegrityError:
                # The same vote landed concurrently
                await self.db.rollback()
                review = await self.get_review_by_id_or_raise(review_id)

        await self._sync_helpful_count(review)
        await self.db.commit()
        await self.db.refresh(review)
        return review

    async def unmark_helpful(self, review_id: UUID, current_user: CurrentUser) -> Review:
        """Remove the caller's helpful vote if present."""
        review = await self.get_review_by_id_or_raise(review_id)

        await self.db.execute(
            delete(ReviewHelpfulVote).where(
                ReviewHelpfulVote.review_id == review_id,
                ReviewHelpfulVote.user_id == current_user.user_id,
            )
        )
        await self._sync_helpful_count(review)
        await self.db.commit()
        await self.db.refresh(review)
        return review

    async def respond(self, review_id: UUID, text: str, current_user: CurrentUser) -> Review:
        """
        Attach the tour agency's response to a review.

        Raises:
            NotFoundError: If the review does not exist
            AuthorizationError: If the caller is neither the tour's agency nor an admin
        """
        review = await self.get_review_by_id_or_raise(review_id)
        tour = await self.tour_service.get_tour_by_id_or_raise(review.tour_id)
        if tour.agency_id != current_user.user_id and not current_user.is_admin:
            raise AuthorizationError(detail="Only the tour's agency can respond to its reviews")

        review.response_text = text
        review.responded_by = current_user.user_id
        review.responded_at = utcnow()
        await self.db.commit()
        await self.db.refresh(review)

        logger.info(
            "Review response recorded",
            extra={"review_id": str(review_id), "responder": str(current_user.user_id)}
        )
        return review

"""
Reservation service: the only code path that creates or cancels bookings.

Every capacity mutation runs inside the tour's critical section and commits
the booking, the tour counters and the ledger entry in one transaction.
"""

import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..core.clock import utcnow
from ..core.config import settings
from ..core.dependencies import CurrentUser
from ..core.exceptions import (
    AuthorizationError,
    CapacityExceededError,
    ConcurrentModificationError,
    DateUnavailableError,
    InvalidStateError,
    NotFoundError,
    TourUnavailableError,
    ValidationError,
)
from ..core.locking import critical_section, retry_on_version_conflict, tour_lock_key
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus, PaymentStatus, can_transition
from ..models.ledger import CapacityLedgerEntry, LedgerReason
from ..schemas.booking import CancelBookingRequest, CreateBookingRequest, TransitionBookingRequest
from . import capacity_ledger
from .tour_service import TourService
from .user_service import UserService

logger = logging.getLogger(__name__)


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tour_service = TourService(db)
        self.user_service = UserService(db)

    async def create_booking(self, request: CreateBookingRequest, current_user: CurrentUser) -> Booking:
        """
        Book spots on a tour start date.

        Args:
            request: Booking request; the start date is matched by calendar day
            current_user: The booking user

        Returns:
            The persisted booking in ``pending`` status

        Raises:
            NotFoundError: If the user or tour does not exist
            TourUnavailableError: If the tour is inactive or closed for booking
            DateUnavailableError: If the tour is not scheduled on the date or it is sold out
            CapacityExceededError: If the party does not fit, or conflicts persisted
        """
        await self.user_service.get_active_user_or_raise(current_user.user_id)

        start_day = capacity_ledger.as_calendar_day(request.start_date)
        requested = request.participants.total

        async def attempt() -> Booking:
            async with critical_section(self.db, tour_lock_key(request.tour_id)):
                tour = await self.tour_service.get_tour_by_id_or_raise(request.tour_id, refresh=True)

                if not tour.is_active or not tour.is_available:
                    metrics_collector.record_booking_rejected("tour_unavailable")
                    logger.warning(
                        "Booking rejected - tour unavailable",
                        extra={"tour_id": str(request.tour_id), "is_active": tour.is_active,
                               "is_available": tour.is_available}
                    )
                    raise TourUnavailableError(str(request.tour_id), tour.is_active, tour.is_available)

                try:
                    entry = capacity_ledger.find_bookable_date(tour, start_day)
                    booking = Booking(
                        id=uuid4(),
                        user_id=current_user.user_id,
                        tour_id=tour.id,
                        adults=request.participants.adults,
                        children=request.participants.children,
                        infants=request.participants.infants,
                        total_participants=requested,
                        start_date=start_day,
                        end_date=start_day + timedelta(days=tour.duration_days),
                        total_price_amount=tour.price_amount * requested,
                        total_price_currency=tour.price_currency,
                        status=BookingStatus.PENDING.value,
                        payment_status=PaymentStatus.PENDING.value,
                        payment_method=request.payment_method.value if request.payment_method else None,
                        special_requests=request.special_requests,
                        emergency_contact_name=request.emergency_contact.name,
                        emergency_contact_phone=request.emergency_contact.phone,
                        emergency_contact_relationship=request.emergency_contact.relationship,
                    )
                    change = capacity_ledger.charge(tour, entry, requested)
                except (DateUnavailableError, CapacityExceededError) as e:
                    metrics_collector.record_booking_rejected(e.problem_details["code"].lower())
                    logger.warning(
                        "Booking rejected",
                        extra={
                            "tour_id": str(request.tour_id),
                            "start_date": start_day.isoformat(),
                            "requested": requested,
                            "spots_remaining": capacity_ledger.spots_remaining(tour),
                            "code": e.problem_details["code"]
                        }
                    )
                    raise

                self.db.add(booking)
                self.db.add(CapacityLedgerEntry(
                    tour_id=tour.id,
                    booking_id=booking.id,
                    start_date=start_day,
                    delta=change.delta,
                    reason=LedgerReason.BOOKING_CREATED.value,
                    actor=str(current_user.user_id),
                    participants_before=change.participants_before,
                    participants_after=change.participants_after,
                    available_spots_before=change.spots_before,
                    available_spots_after=change.spots_after,
                ))
                await self.db.commit()

                metrics_collector.set_tour_utilization(
                    str(tour.id), tour.current_participants, tour.max_participants
                )
                return booking

        try:
            booking = await retry_on_version_conflict(attempt, "create_booking")
        except StaleDataError:
            tour = await self.tour_service.get_tour_by_id_or_raise(request.tour_id, refresh=True)
            raise CapacityExceededError(
                tour_id=str(request.tour_id),
                requested=requested,
                spots_remaining=capacity_ledger.spots_remaining(tour),
            )
        except IntegrityError as e:
            # A database constraint caught what the checks above could not
            logger.error(
                "Booking insert violated a capacity constraint",
                extra={"tour_id": str(request.tour_id), "error": str(e)}
            )
            tour = await self.tour_service.get_tour_by_id_or_raise(request.tour_id, refresh=True)
            raise CapacityExceededError(
                tour_id=str(request.tour_id),
                requested=requested,
                spots_remaining=capacity_ledger.spots_remaining(tour),
            )

        await self.db.refresh(booking)
        metrics_collector.record_booking_created(str(request.tour_id))
        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": str(booking.id),
                "booking_reference": booking.booking_reference,
                "tour_id": str(request.tour_id),
                "start_date": start_day.isoformat(),
                "participants": requested,
                "user_id": str(current_user.user_id)
            }
        )
        return booking

    async def cancel_booking(self, request: CancelBookingRequest, current_user: CurrentUser) -> Booking:
        """
        Cancel a booking and release its spots.

        The booking is re-read inside the tour's critical section, so two
        concurrent cancellations credit the tour once.

        Raises:
            NotFoundError: If the booking does not exist
            AuthorizationError: If the booking belongs to another user
            InvalidStateError: If the booking is already cancelled, completed or refunded
            ConcurrentModificationError: If version conflicts persisted
        """
        booking = await self.get_booking_by_id_or_raise(request.booking_id)
        if booking.user_id != current_user.user_id:
            logger.warning(
                "Cancellation rejected - booking belongs to another user",
                extra={"booking_id": str(request.booking_id), "user_id": str(current_user.user_id)}
            )
            raise AuthorizationError(detail="You can only cancel your own bookings")

        tour_id = booking.tour_id

        async def attempt() -> Booking:
            async with critical_section(self.db, tour_lock_key(tour_id)):
                booking = await self.get_booking_by_id_or_raise(request.booking_id, refresh=True)
                if not can_transition(booking.status, BookingStatus.CANCELLED):
                    logger.warning(
                        "Cancellation rejected - invalid state",
                        extra={"booking_id": str(request.booking_id), "status": booking.status}
                    )
                    raise InvalidStateError(
                        str(request.booking_id),
                        BookingStatus(booking.status).value,
                        BookingStatus.CANCELLED.value,
                    )

                tour = await self.tour_service.get_tour_by_id_or_raise(tour_id, refresh=True)

                booking.status = BookingStatus.CANCELLED.value
                booking.cancellation_reason = request.reason
                booking.cancelled_at = utcnow()

                entry = tour.find_start_date(booking.start_date)
                if entry is None:
                    logger.warning(
                        "Start date no longer scheduled; releasing aggregate capacity only",
                        extra={"booking_id": str(booking.id), "start_date": booking.start_date.isoformat()}
                    )
                change = capacity_ledger.credit(tour, entry, booking.total_participants)

                self.db.add(CapacityLedgerEntry(
                    tour_id=tour.id,
                    booking_id=booking.id,
                    start_date=booking.start_date,
                    delta=change.delta,
                    reason=LedgerReason.BOOKING_CANCELLED.value,
                    actor=str(current_user.user_id),
                    participants_before=change.participants_before,
                    participants_after=change.participants_after,
                    available_spots_before=change.spots_before,
                    available_spots_after=change.spots_after,
                ))
                await self.db.commit()

                metrics_collector.set_tour_utilization(
                    str(tour.id), tour.current_participants, tour.max_participants
                )
                return booking

        try:
            booking = await retry_on_version_conflict(attempt, "cancel_booking")
        except StaleDataError:
            raise ConcurrentModificationError("booking", str(request.booking_id), settings.booking_retry_attempts)

        await self.db.refresh(booking)
        metrics_collector.record_booking_cancelled()
        logger.info(
            "Booking cancelled successfully",
            extra={
                "booking_id": str(booking.id),
                "tour_id": str(tour_id),
                "released": booking.total_participants
            }
        )
        return booking

    async def get_booking_by_id(self, booking_id: UUID, refresh: bool = False) -> Optional[Booking]:
        stmt = select(Booking).where(Booking.id == booking_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_booking_by_id_or_raise(self, booking_id: UUID, refresh: bool = False) -> Booking:
        """
        Get booking by ID or raise NotFoundError.

        Raises:
            NotFoundError: If booking not found
        """
        booking = await self.get_booking_by_id(booking_id, refresh=refresh)
        if not booking:
            logger.warning("Booking not found", extra={"booking_id": str(booking_id)})
            raise NotFoundError(resource_type="booking", resource_id=str(booking_id))
        return booking

    async def get_booking(self, booking_id: UUID, current_user: CurrentUser) -> Booking:
        """Owners and admins can read a booking."""
        booking = await self.get_booking_by_id_or_raise(booking_id)
        if booking.user_id != current_user.user_id and not current_user.is_admin:
            raise AuthorizationError(detail="You can only view your own bookings")
        return booking

    async def list_bookings_for_user(self, current_user: CurrentUser, user_id: Optional[UUID] = None) -> list[Booking]:
        """List a user's bookings, newest first. Only admins may list another user's bookings."""
        target_user_id = user_id or current_user.user_id
        if target_user_id != current_user.user_id and not current_user.is_admin:
            raise AuthorizationError(detail="You can only list your own bookings")

        stmt = (
            select(Booking)
            .where(Booking.user_id == target_user_id)
            .order_by(Booking.created_at.desc(), Booking.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def transition_booking(self, request: TransitionBookingRequest, current_user: CurrentUser) -> Booking:
        """
        Move a booking along its lifecycle without touching capacity.

        Cancellation must go through ``cancel_booking`` so that spots are
        released; refunds are only possible once a booking is cancelled.

        Raises:
            NotFoundError: If the booking does not exist
            ValidationError: If the target is ``cancelled`` or the refund exceeds the price
            InvalidStateError: If the lifecycle forbids the transition
            ConcurrentModificationError: If the booking changed concurrently
        """
        target = request.target_status
        if target == BookingStatus.CANCELLED:
            raise ValidationError(detail="Use the cancel operation to cancel a booking")

        booking = await self.get_booking_by_id_or_raise(request.booking_id, refresh=True)
        current = BookingStatus(booking.status)
        if not can_transition(current, target):
            logger.warning(
                "Transition rejected - invalid state",
                extra={"booking_id": str(request.booking_id), "from": current.value, "to": target.value}
            )
            raise InvalidStateError(str(request.booking_id), current.value, target.value)

        if target == BookingStatus.REFUNDED:
            refund_amount = request.refund_amount
            if refund_amount is None:
                refund_amount = booking.total_price_amount
            if refund_amount > booking.total_price_amount:
                raise ValidationError(
                    detail="Refund cannot exceed the booking's total price",
                    errors={"refund_amount": refund_amount, "total_price": booking.total_price_amount}
                )
            booking.refund_amount = refund_amount
            booking.refunded_at = utcnow()
            booking.payment_status = PaymentStatus.REFUNDED.value

        booking.status = target.value
        if request.notes is not None:
            booking.notes = request.notes

        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            metrics_collector.record_ledger_conflict("transition_booking")
            raise ConcurrentModificationError("booking", str(request.booking_id), 1)

        await self.db.refresh(booking)
        logger.info(
            "Booking status changed",
            extra={
                "booking_id": str(booking.id),
                "from": current.value,
                "to": target.value,
                "actor": str(current_user.user_id)
            }
        )
        return booking

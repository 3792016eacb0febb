"""Tour service for catalog and schedule operations."""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..core.config import settings
from ..core.dependencies import CurrentUser
from ..core.exceptions import (
    AuthorizationError,
    ConcurrentModificationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..core.locking import critical_section, retry_on_version_conflict, tour_lock_key
from ..core.observability import metrics_collector
from ..models.booking import Booking, BookingStatus
from ..models.ledger import CapacityLedgerEntry, LedgerReason
from ..models.tour import DEFAULT_CANCELLATION_POLICY, Tour, TourStartDate
from ..models.user import UserRole
from ..schemas.tour import AddStartDateRequest, CreateTourRequest, RemoveStartDateRequest, UpdateTourRequest
from .park_service import ParkService
from .user_service import UserService

logger = logging.getLogger(__name__)


class TourService:
    """Service for tour-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.park_service = ParkService(db)
        self.user_service = UserService(db)

    def _resolve_spots(self, max_participants: int, requested: Optional[int], start_date: date) -> int:
        if requested is None:
            return max_participants
        if requested > max_participants:
            raise ValidationError(
                detail=f"Start date {start_date.isoformat()} offers {requested} spots but the tour "
                       f"takes at most {max_participants} participants",
                errors={"available_spots": requested, "max_participants": max_participants}
            )
        return requested

    async def create_tour(self, request: CreateTourRequest, current_user: CurrentUser) -> Tour:
        """
        Create a tour for an active travel agency in an active park.

        Args:
            request: Tour creation request
            current_user: Caller; agencies create tours they own, admins may
                name any active agency

        Returns:
            Created tour entity with its schedule

        Raises:
            NotFoundError: If the park or agency is missing or inactive
            AuthorizationError: If an agency creates a tour for another agency
            ValidationError: If a start date offers more spots than the tour holds
        """
        agency_id = request.agency_id or current_user.user_id
        if agency_id != current_user.user_id and not current_user.is_admin:
            raise AuthorizationError(detail="Agencies can only create tours they own")

        await self.park_service.get_active_park_or_raise(request.park_id)
        await self.user_service.get_active_user_or_raise(agency_id, role=UserRole.TRAVEL_AGENCY)

        start_dates = [
            TourStartDate(
                start_date=entry.start_date,
                available_spots=self._resolve_spots(request.max_participants, entry.available_spots, entry.start_date),
            )
            for entry in request.start_dates
        ]

        tour = Tour(
            park_id=request.park_id,
            agency_id=agency_id,
            title=request.title,
            description=request.description,
            duration_days=request.duration_days,
            difficulty_level=request.difficulty_level.value,
            cancellation_policy=request.cancellation_policy or DEFAULT_CANCELLATION_POLICY,
            price_amount=request.price.amount,
            price_currency=request.price.currency or settings.default_currency,
            max_participants=request.max_participants,
            current_participants=0,
            start_dates=start_dates,
        )

        self.db.add(tour)
        await self.db.commit()
        tour = await self.get_tour_by_id_or_raise(tour.id, refresh=True)

        logger.info(
            "Tour created successfully",
            extra={
                "tour_id": str(tour.id),
                "agency_id": str(agency_id),
                "max_participants": tour.max_participants,
                "start_dates": len(start_dates)
            }
        )
        return tour

    async def get_tour_by_id(self, tour_id: UUID, refresh: bool = False) -> Optional[Tour]:
        """
        Get tour by ID together with its schedule.

        ``refresh`` overwrites any copy already in the session; every read
        inside a critical section uses it.
        """
        stmt = select(Tour).where(Tour.id == tour_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_tour_by_id_or_raise(self, tour_id: UUID, refresh: bool = False) -> Tour:
        """
        Get tour by ID or raise NotFoundError.

        Raises:
            NotFoundError: If tour not found
        """
        tour = await self.get_tour_by_id(tour_id, refresh=refresh)
        if not tour:
            logger.warning(
                "Tour not found",
                extra={"tour_id": str(tour_id)}
            )
            raise NotFoundError(
                resource_type="tour",
                resource_id=str(tour_id)
            )
        return tour

    def _ensure_owner(self, tour: Tour, current_user: CurrentUser) -> None:
        if tour.agency_id != current_user.user_id and not current_user.is_admin:
            logger.warning(
                "Tour change rejected - caller does not own the tour",
                extra={"tour_id": str(tour.id), "user_id": str(current_user.user_id)}
            )
            raise AuthorizationError(detail="Only the owning agency can change this tour")

    def _check_new_maximum(self, tour: Tour, max_participants: int) -> None:
        if max_participants < tour.current_participants:
            raise ValidationError(
                detail=f"Tour {tour.id} already has {tour.current_participants} participants booked; "
                       f"the maximum cannot drop to {max_participants}",
                errors={"max_participants": max_participants, "current_participants": tour.current_participants}
            )

    def _clamp_start_dates(self, tour: Tour, current_user: CurrentUser) -> None:
        """Cut every start date down to the tour's maximum, recording each cut."""
        for entry in tour.start_dates:
            if entry.available_spots <= tour.max_participants:
                continue
            self.db.add(CapacityLedgerEntry(
                tour_id=tour.id,
                start_date=entry.start_date,
                delta=tour.max_participants - entry.available_spots,
                reason=LedgerReason.MAXIMUM_LOWERED.value,
                actor=str(current_user.user_id),
                participants_before=tour.current_participants,
                participants_after=tour.current_participants,
                available_spots_before=entry.available_spots,
                available_spots_after=tour.max_participants,
            ))
            entry.available_spots = tour.max_participants

    async def update_tour(self, request: UpdateTourRequest, current_user: CurrentUser) -> Tour:
        """
        Update a tour's details, capacity or availability flags.

        Only the fields present in the request change. The update runs in the
        tour's critical section, so a new maximum is checked against the
        participants actually booked. Lowering the maximum also cuts any start
        date offering more spots than the new maximum.

        Raises:
            NotFoundError: If the tour does not exist
            AuthorizationError: If the caller does not own the tour
            ValidationError: If the new maximum is below the booked participants
        """
        changes = request.model_dump(exclude_none=True, exclude={"tour_id"})

        async def attempt() -> None:
            async with critical_section(self.db, tour_lock_key(request.tour_id)):
                tour = await self.get_tour_by_id_or_raise(request.tour_id, refresh=True)
                self._ensure_owner(tour, current_user)

                if request.max_participants is not None:
                    self._check_new_maximum(tour, request.max_participants)
                    tour.max_participants = request.max_participants
                    self._clamp_start_dates(tour, current_user)

                for field in ("title", "description", "duration_days", "cancellation_policy",
                              "is_active", "is_available"):
                    value = getattr(request, field)
                    if value is not None:
                        setattr(tour, field, value)

                if request.difficulty_level is not None:
                    tour.difficulty_level = request.difficulty_level.value
                if request.price is not None:
                    tour.price_amount = request.price.amount
                    tour.price_currency = request.price.currency or settings.default_currency

                await self.db.commit()
                metrics_collector.set_tour_utilization(
                    str(tour.id), tour.current_participants, tour.max_participants
                )

        try:
            await retry_on_version_conflict(attempt, "update_tour")
        except StaleDataError:
            raise ConcurrentModificationError("tour", str(request.tour_id), settings.booking_retry_attempts)

        logger.info(
            "Tour updated",
            extra={"tour_id": str(request.tour_id), "fields": sorted(changes)}
        )
        return await self.get_tour_by_id_or_raise(request.tour_id, refresh=True)

    async def add_start_date(self, request: AddStartDateRequest, current_user: CurrentUser) -> Tour:
        """
        Schedule a new start date on a tour.

        Raises:
            NotFoundError: If the tour does not exist
            AuthorizationError: If the caller does not own the tour
            ConflictError: If the date is already scheduled
            ValidationError: If the date offers more spots than the tour holds
        """

        async def attempt() -> None:
            async with critical_section(self.db, tour_lock_key(request.tour_id)):
                tour = await self.get_tour_by_id_or_raise(request.tour_id, refresh=True)
                self._ensure_owner(tour, current_user)

                if tour.find_start_date(request.start_date) is not None:
                    raise ConflictError(
                        detail=f"Tour {request.tour_id} is already scheduled on {request.start_date.isoformat()}",
                        conflicting_resource={
                            "tour_id": str(request.tour_id),
                            "start_date": request.start_date.isoformat()
                        }
                    )

                spots = self._resolve_spots(tour.max_participants, request.available_spots, request.start_date)
                tour.start_dates.append(TourStartDate(start_date=request.start_date, available_spots=spots))
                self.db.add(CapacityLedgerEntry(
                    tour_id=tour.id,
                    start_date=request.start_date,
                    delta=spots,
                    reason=LedgerReason.START_DATE_ADDED.value,
                    actor=str(current_user.user_id),
                    participants_before=tour.current_participants,
                    participants_after=tour.current_participants,
                    available_spots_before=None,
                    available_spots_after=spots,
                ))
                await self.db.commit()

        try:
            await retry_on_version_conflict(attempt, "add_start_date")
        except StaleDataError:
            raise ConcurrentModificationError("tour", str(request.tour_id), settings.booking_retry_attempts)

        logger.info(
            "Start date added",
            extra={"tour_id": str(request.tour_id), "start_date": request.start_date.isoformat()}
        )
        return await self.get_tour_by_id_or_raise(request.tour_id, refresh=True)

    async def remove_start_date(self, request: RemoveStartDateRequest, current_user: CurrentUser) -> Tour:
        """
        Remove a start date from a tour's schedule.

        Bookings already made for the date are kept. Cancelling one of them
        later releases only the aggregate counter.

        Raises:
            NotFoundError: If the tour or the date does not exist
            AuthorizationError: If the caller does not own the tour
        """

        async def attempt() -> int:
            async with critical_section(self.db, tour_lock_key(request.tour_id)):
                tour = await self.get_tour_by_id_or_raise(request.tour_id, refresh=True)
                self._ensure_owner(tour, current_user)

                entry = tour.find_start_date(request.start_date)
                if entry is None:
                    raise NotFoundError(
                        resource_type="start date",
                        resource_id=f"{request.tour_id}/{request.start_date.isoformat()}"
                    )

                spots = entry.available_spots
                tour.start_dates.remove(entry)
                self.db.add(CapacityLedgerEntry(
                    tour_id=tour.id,
                    start_date=request.start_date,
                    delta=-spots,
                    reason=LedgerReason.START_DATE_REMOVED.value,
                    actor=str(current_user.user_id),
                    participants_before=tour.current_participants,
                    participants_after=tour.current_participants,
                    available_spots_before=spots,
                    available_spots_after=None,
                ))
                outstanding = await self.db.scalar(
                    select(func.count(Booking.id)).where(
                        Booking.tour_id == request.tour_id,
                        Booking.start_date == request.start_date,
                        Booking.status.in_([BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value]),
                    )
                )
                await self.db.commit()
                return outstanding or 0

        try:
            outstanding_bookings = await retry_on_version_conflict(attempt, "remove_start_date")
        except StaleDataError:
            raise ConcurrentModificationError("tour", str(request.tour_id), settings.booking_retry_attempts)

        if outstanding_bookings > 0:
            logger.warning(
                "Start date removed with bookings outstanding",
                extra={
                    "tour_id": str(request.tour_id),
                    "start_date": request.start_date.isoformat(),
                    "outstanding_bookings": outstanding_bookings
                }
            )
        else:
            logger.info(
                "Start date removed",
                extra={"tour_id": str(request.tour_id), "start_date": request.start_date.isoformat()}
            )
        return await self.get_tour_by_id_or_raise(request.tour_id, refresh=True)

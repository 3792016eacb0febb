"""Booking router for reservation operations."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, get_current_user, get_db, get_idempotency_key, require_roles
from ..core.exceptions import ProblemDetailsException
from ..models.booking import Booking as BookingModel
from ..models.user import UserRole
from ..schemas.booking import (
    Booking,
    BookingList,
    CancelBookingRequest,
    CreateBookingRequest,
    EmergencyContact,
    GetBookingRequest,
    ListBookingsRequest,
    Participants,
    TransitionBookingRequest,
)
from ..schemas.common import Money
from ..services.booking_service import BookingService
from ..services.idempotency_service import IdempotencyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/booking", tags=["booking"])

# Define dependencies to avoid B008 linting errors
DB_DEPENDENCY = Depends(get_db)
AUTH_DEPENDENCY = Depends(get_current_user)
ADMIN_DEPENDENCY = Depends(require_roles(UserRole.ADMIN.value))
IDEMPOTENCY_KEY_DEPENDENCY = Depends(get_idempotency_key)


def _convert_booking_to_schema(booking_model: BookingModel) -> Booking:
    """Convert booking model to schema."""
    return Booking(
        id=str(booking_model.id),
        booking_reference=booking_model.booking_reference,
        user_id=str(booking_model.user_id),
        tour_id=str(booking_model.tour_id),
        participants=Participants(
            adults=booking_model.adults,
            children=booking_model.children,
            infants=booking_model.infants
        ),
        total_participants=booking_model.total_participants,
        start_date=booking_model.start_date,
        end_date=booking_model.end_date,
        total_price=Money(
            amount=booking_model.total_price_amount,
            currency=booking_model.total_price_currency
        ),
        status=booking_model.status,
        payment_status=booking_model.payment_status,
        payment_method=booking_model.payment_method,
        special_requests=booking_model.special_requests,
        emergency_contact=EmergencyContact(
            name=booking_model.emergency_contact_name,
            phone=booking_model.emergency_contact_phone,
            relationship=booking_model.emergency_contact_relationship
        ),
        cancellation_reason=booking_model.cancellation_reason,
        cancelled_at=booking_model.cancelled_at,
        refund_amount=booking_model.refund_amount,
        refunded_at=booking_model.refunded_at,
        created_at=booking_model.created_at
    )


@router.post("/create", response_model=Booking)
async def create_booking(
    request: CreateBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY,
    idempotency_key: Optional[str] = IDEMPOTENCY_KEY_DEPENDENCY
) -> JSONResponse:
    """
    Book spots on a tour start date.

    Replays the first outcome when retried with the same Idempotency-Key header.
    """
    booking_service = BookingService(db)

    async def operation():
        booking = await booking_service.create_booking(request, current_user)
        return _convert_booking_to_schema(booking).model_dump(mode="json")

    try:
        return await IdempotencyService(db).run(
            idempotency_key=idempotency_key,
            method="booking/create",
            user_id=current_user.user_id,
            request_body=request.model_dump(mode="json"),
            operation=operation
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={
                "tour_id": str(request.tour_id),
                "user_id": str(current_user.user_id),
                "idempotency_key": idempotency_key,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/cancel", response_model=Booking)
async def cancel_booking(
    request: CancelBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY,
    idempotency_key: Optional[str] = IDEMPOTENCY_KEY_DEPENDENCY
) -> JSONResponse:
    """
    Cancel a booking and release its spots.

    Replays the first outcome when retried with the same Idempotency-Key header.
    """
    booking_service = BookingService(db)

    async def operation():
        booking = await booking_service.cancel_booking(request, current_user)
        return _convert_booking_to_schema(booking).model_dump(mode="json")

    try:
        return await IdempotencyService(db).run(
            idempotency_key=idempotency_key,
            method="booking/cancel",
            user_id=current_user.user_id,
            request_body=request.model_dump(mode="json"),
            operation=operation
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking cancellation",
            extra={
                "booking_id": str(request.booking_id),
                "user_id": str(current_user.user_id),
                "idempotency_key": idempotency_key,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/get", response_model=Booking)
async def get_booking(
    request: GetBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """Get a booking owned by the caller."""
    booking = await BookingService(db).get_booking(request.booking_id, current_user)
    return JSONResponse(
        status_code=200,
        content=_convert_booking_to_schema(booking).model_dump(mode="json")
    )


@router.post("/list", response_model=BookingList)
async def list_bookings(
    request: ListBookingsRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """List the caller's bookings, newest first."""
    bookings = await BookingService(db).list_bookings_for_user(current_user, request.user_id)
    response_data = BookingList(bookings=[_convert_booking_to_schema(b) for b in bookings])
    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))


@router.post("/transition", response_model=Booking)
async def transition_booking(
    request: TransitionBookingRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = ADMIN_DEPENDENCY
) -> JSONResponse:
    """Confirm, complete or refund a booking. Admin only."""
    booking = await BookingService(db).transition_booking(request, current_user)
    return JSONResponse(
        status_code=200,
        content=_convert_booking_to_schema(booking).model_dump(mode="json")
    )

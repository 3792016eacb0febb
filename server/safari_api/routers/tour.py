"""Tour router for catalog and schedule operations."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, get_db, require_roles
from ..core.exceptions import ProblemDetailsException
from ..models.tour import Tour as TourModel
from ..models.user import UserRole
from ..schemas.common import Money
from ..schemas.tour import (
    AddStartDateRequest,
    CreateTourRequest,
    GetTourRequest,
    RemoveStartDateRequest,
    StartDate,
    Tour,
    UpdateTourRequest,
)
from ..services import capacity_ledger
from ..services.tour_service import TourService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/tour", tags=["tour"])

DB_DEPENDENCY = Depends(get_db)
AGENCY_DEPENDENCY = Depends(require_roles(UserRole.TRAVEL_AGENCY.value))


def _convert_tour_to_schema(tour_model: TourModel) -> Tour:
    """Convert tour model to schema."""
    return Tour(
        id=str(tour_model.id),
        park_id=str(tour_model.park_id),
        agency_id=str(tour_model.agency_id),
        title=tour_model.title,
        description=tour_model.description,
        duration_days=tour_model.duration_days,
        price=Money(amount=tour_model.price_amount, currency=tour_model.price_currency),
        difficulty_level=tour_model.difficulty_level,
        cancellation_policy=tour_model.cancellation_policy,
        max_participants=tour_model.max_participants,
        current_participants=tour_model.current_participants,
        spots_remaining=capacity_ledger.spots_remaining(tour_model),
        is_fully_booked=capacity_ledger.is_fully_booked(tour_model),
        is_active=tour_model.is_active,
        is_available=tour_model.is_available,
        rating_average=tour_model.rating_average,
        rating_count=tour_model.rating_count,
        start_dates=[
            StartDate(start_date=entry.start_date, available_spots=entry.available_spots)
            for entry in tour_model.start_dates
        ],
        created_at=tour_model.created_at
    )


@router.post("/create", response_model=Tour)
async def create_tour(
    request: CreateTourRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AGENCY_DEPENDENCY
) -> JSONResponse:
    """Create a tour with its initial schedule. Travel agencies only."""
    tour_service = TourService(db)

    try:
        tour = await tour_service.create_tour(request, current_user)
        return JSONResponse(
            status_code=200,
            content=_convert_tour_to_schema(tour).model_dump(mode="json")
        )

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in tour creation",
            extra={
                "park_id": str(request.park_id),
                "title": request.title,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e


@router.post("/get", response_model=Tour)
async def get_tour(
    request: GetTourRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a tour with its schedule and remaining capacity."""
    tour = await TourService(db).get_tour_by_id_or_raise(request.tour_id)
    return JSONResponse(
        status_code=200,
        content=_convert_tour_to_schema(tour).model_dump(mode="json")
    )


@router.post("/update", response_model=Tour)
async def update_tour(
    request: UpdateTourRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AGENCY_DEPENDENCY
) -> JSONResponse:
    """Update tour details, capacity or availability. Owning agency only."""
    tour = await TourService(db).update_tour(request, current_user)
    return JSONResponse(
        status_code=200,
        content=_convert_tour_to_schema(tour).model_dump(mode="json")
    )


@router.post("/add-start-date", response_model=Tour)
async def add_start_date(
    request: AddStartDateRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AGENCY_DEPENDENCY
) -> JSONResponse:
    """Schedule a new start date. Owning agency only."""
    tour = await TourService(db).add_start_date(request, current_user)
    return JSONResponse(
        status_code=200,
        content=_convert_tour_to_schema(tour).model_dump(mode="json")
    )


@router.post("/remove-start-date", response_model=Tour)
async def remove_start_date(
    request: RemoveStartDateRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AGENCY_DEPENDENCY
) -> JSONResponse:
    """Remove a start date from the schedule. Owning agency only."""
    tour = await TourService(db).remove_start_date(request, current_user)
    return JSONResponse(
        status_code=200,
        content=_convert_tour_to_schema(tour).model_dump(mode="json")
    )

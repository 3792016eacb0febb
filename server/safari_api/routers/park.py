"""Park router for catalog operations."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, get_db, require_roles
from ..models.park import Park as ParkModel
from ..models.user import UserRole
from ..schemas.park import CreateParkRequest, DeactivateParkRequest, GetParkRequest, Park, UpdateParkRequest
from ..services.park_service import ParkService

router = APIRouter(prefix="/v1/park", tags=["park"])

DB_DEPENDENCY = Depends(get_db)
ADMIN_DEPENDENCY = Depends(require_roles(UserRole.ADMIN.value))


def _convert_park_to_schema(park_model: ParkModel) -> Park:
    return Park(
        id=str(park_model.id),
        name=park_model.name,
        description=park_model.description,
        location=park_model.location,
        latitude=park_model.latitude,
        longitude=park_model.longitude,
        area_km2=park_model.area_km2,
        established_year=park_model.established_year,
        entry_fee_usd=park_model.entry_fee_usd,
        best_time_to_visit=park_model.best_time_to_visit,
        is_active=park_model.is_active,
        rating_average=park_model.rating_average,
        rating_count=park_model.rating_count,
        created_at=park_model.created_at
    )


@router.post("/create", response_model=Park)
async def create_park(
    request: CreateParkRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = ADMIN_DEPENDENCY
) -> JSONResponse:
    """Create a park. Admin only."""
    park = await ParkService(db).create_park(request)
    return JSONResponse(status_code=200, content=_convert_park_to_schema(park).model_dump(mode="json"))


@router.post("/get", response_model=Park)
async def get_park(
    request: GetParkRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a park."""
    park = await ParkService(db).get_park_by_id_or_raise(request.park_id)
    return JSONResponse(status_code=200, content=_convert_park_to_schema(park).model_dump(mode="json"))


@router.post("/update", response_model=Park)
async def update_park(
    request: UpdateParkRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = ADMIN_DEPENDENCY
) -> JSONResponse:
    """Update a park. Admin only."""
    park = await ParkService(db).update_park(request)
    return JSONResponse(status_code=200, content=_convert_park_to_schema(park).model_dump(mode="json"))


@router.post("/deactivate", response_model=Park)
async def deactivate_park(
    request: DeactivateParkRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = ADMIN_DEPENDENCY
) -> JSONResponse:
    """Delist a park. Admin only."""
    park = await ParkService(db).deactivate_park(request.park_id)
    return JSONResponse(status_code=200, content=_convert_park_to_schema(park).model_dump(mode="json"))

"""Lodge router for catalog operations."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, get_db, require_roles
from ..models.lodge import Lodge as LodgeModel
from ..models.user import UserRole
from ..schemas.common import Money
from ..schemas.lodge import CreateLodgeRequest, GetLodgeRequest, Lodge
from ..services.lodge_service import LodgeService

router = APIRouter(prefix="/v1/lodge", tags=["lodge"])

DB_DEPENDENCY = Depends(get_db)
OWNER_DEPENDENCY = Depends(require_roles(UserRole.LODGE_OWNER.value))


def _convert_lodge_to_schema(lodge_model: LodgeModel) -> Lodge:
    return Lodge(
        id=str(lodge_model.id),
        park_id=str(lodge_model.park_id),
        owner_id=str(lodge_model.owner_id) if lodge_model.owner_id else None,
        name=lodge_model.name,
        description=lodge_model.description,
        location=lodge_model.location,
        lodge_type=lodge_model.lodge_type,
        capacity=lodge_model.capacity,
        price_per_night=Money(
            amount=lodge_model.price_per_night_amount,
            currency=lodge_model.price_per_night_currency
        ),
        latitude=lodge_model.latitude,
        longitude=lodge_model.longitude,
        contact_email=lodge_model.contact_email,
        contact_phone=lodge_model.contact_phone,
        is_active=lodge_model.is_active,
        rating_average=lodge_model.rating_average,
        rating_count=lodge_model.rating_count
    )


@router.post("/create", response_model=Lodge)
async def create_lodge(
    request: CreateLodgeRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = OWNER_DEPENDENCY
) -> JSONResponse:
    """Create a lodge in an active park. Lodge owners and admins only."""
    lodge = await LodgeService(db).create_lodge(request, current_user)
    return JSONResponse(status_code=200, content=_convert_lodge_to_schema(lodge).model_dump(mode="json"))


@router.post("/get", response_model=Lodge)
async def get_lodge(
    request: GetLodgeRequest,
    db: AsyncSession = DB_DEPENDENCY
) -> JSONResponse:
    """Get a lodge."""
    lodge = await LodgeService(db).get_lodge_by_id_or_raise(request.lodge_id)
    return JSONResponse(status_code=200, content=_convert_lodge_to_schema(lodge).model_dump(mode="json"))

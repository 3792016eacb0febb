"""User router for account operations."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, get_current_user, get_db, require_roles
from ..models.user import User as UserModel, UserRole
from ..schemas.user import CreateUserRequest, DeactivateUserRequest, GetUserRequest, User
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/user", tags=["user"])

DB_DEPENDENCY = Depends(get_db)
AUTH_DEPENDENCY = Depends(get_current_user)
ADMIN_DEPENDENCY = Depends(require_roles(UserRole.ADMIN.value))


async def get_optional_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Optional[CurrentUser]:
    """Decode the bearer token when one is sent; registration is otherwise anonymous."""
    if authorization is None:
        return None
    return await get_current_user(authorization)


OPTIONAL_AUTH_DEPENDENCY = Depends(get_optional_user)


def _convert_user_to_schema(user_model: UserModel) -> User:
    """Convert user model to schema."""
    return User(
        id=str(user_model.id),
        email=user_model.email,
        name=user_model.name,
        phone=user_model.phone,
        role=user_model.role,
        company_name=user_model.company_name,
        is_active=user_model.is_active,
        is_verified=user_model.is_verified,
        created_at=user_model.created_at
    )


@router.post("/create", response_model=User)
async def create_user(
    request: CreateUserRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: Optional[CurrentUser] = OPTIONAL_AUTH_DEPENDENCY
) -> JSONResponse:
    """Register a user."""
    user = await UserService(db).create_user(request, current_user)
    return JSONResponse(status_code=200, content=_convert_user_to_schema(user).model_dump(mode="json"))


@router.post("/get", response_model=User)
async def get_user(
    request: GetUserRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = AUTH_DEPENDENCY
) -> JSONResponse:
    """Get the caller's profile, or any profile for admins."""
    user = await UserService(db).get_user(request.user_id, current_user)
    return JSONResponse(status_code=200, content=_convert_user_to_schema(user).model_dump(mode="json"))


@router.post("/deactivate", response_model=User)
async def deactivate_user(
    request: DeactivateUserRequest,
    db: AsyncSession = DB_DEPENDENCY,
    current_user: CurrentUser = ADMIN_DEPENDENCY
) -> JSONResponse:
    """Deactivate an account. Admin only."""
    user = await UserService(db).deactivate_user(request.user_id)
    logger.info(
        "User deactivated by admin",
        extra={"user_id": str(request.user_id), "admin_id": str(current_user.user_id)}
    )
    return JSONResponse(status_code=200, content=_convert_user_to_schema(user).model_dump(mode="json"))

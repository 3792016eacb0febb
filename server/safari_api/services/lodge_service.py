"""Lodge service for catalog operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.dependencies import CurrentUser
from ..core.exceptions import AuthorizationError, NotFoundError
from ..models.lodge import Lodge
from ..schemas.lodge import CreateLodgeRequest
from .park_service import ParkService
from .user_service import UserService

logger = logging.getLogger(__name__)


class LodgeService:
    """Service for lodge-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.park_service = ParkService(db)
        self.user_service = UserService(db)

    async def create_lodge(self, request: CreateLodgeRequest, current_user: CurrentUser) -> Lodge:
        """
        Create a lodge in an active park.

        Lodge owners always own the lodges they create; admins may assign any
        existing user.

        Raises:
            NotFoundError: If the park is missing or inactive, or the owner does not exist
            AuthorizationError: If a lodge owner assigns another owner
        """
        await self.park_service.get_active_park_or_raise(request.park_id)

        owner_id = request.owner_id or current_user.user_id
        if owner_id != current_user.user_id and not current_user.is_admin:
            raise AuthorizationError(detail="Lodge owners can only create lodges they own")
        await self.user_service.get_user_by_id_or_raise(owner_id)

        lodge = Lodge(
            park_id=request.park_id,
            owner_id=owner_id,
            name=request.name,
            description=request.description,
            location=request.location,
            lodge_type=request.lodge_type.value,
            capacity=request.capacity,
            price_per_night_amount=request.price_per_night.amount,
            price_per_night_currency=request.price_per_night.currency or settings.default_currency,
            latitude=request.latitude,
            longitude=request.longitude,
            contact_email=request.contact_email,
            contact_phone=request.contact_phone,
        )

        self.db.add(lodge)
        await self.db.commit()
        await self.db.refresh(lodge)

        logger.info(
            "Lodge created successfully",
            extra={"lodge_id": str(lodge.id), "park_id": str(request.park_id), "owner_id": str(owner_id)}
        )
        return lodge

    async def get_lodge_by_id(self, lodge_id: UUID) -> Optional[Lodge]:
        result = await self.db.execute(select(Lodge).where(Lodge.id == lodge_id))
        return result.scalar_one_or_none()

    async def get_lodge_by_id_or_raise(self, lodge_id: UUID) -> Lodge:
        lodge = await self.get_lodge_by_id(lodge_id)
        if not lodge:
            logger.warning("Lodge not found", extra={"lodge_id": str(lodge_id)})
            raise NotFoundError(resource_type="lodge", resource_id=str(lodge_id))
        return lodge

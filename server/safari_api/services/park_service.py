"""Park service for catalog operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..core.config import settings
from ..core.exceptions import ConcurrentModificationError, NotFoundError
from ..core.locking import critical_section, park_lock_key, retry_on_version_conflict
from ..models.park import Park
from ..schemas.park import CreateParkRequest, UpdateParkRequest

logger = logging.getLogger(__name__)


class ParkService:
    """Service for park-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_park(self, request: CreateParkRequest) -> Park:
        park = Park(**request.model_dump())

        self.db.add(park)
        await self.db.commit()
        await self.db.refresh(park)

        logger.info(
            "Park created successfully",
            extra={"park_id": str(park.id), "park_name": park.name}
        )
        return park

    async def get_park_by_id(self, park_id: UUID, refresh: bool = False) -> Optional[Park]:
        """
        Get park by ID.

        ``refresh`` overwrites any copy already in the session, which callers
        inside a critical section need to see the committed values.
        """
        stmt = select(Park).where(Park.id == park_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_park_by_id_or_raise(self, park_id: UUID, refresh: bool = False) -> Park:
        park = await self.get_park_by_id(park_id, refresh=refresh)
        if not park:
            logger.warning("Park not found", extra={"park_id": str(park_id)})
            raise NotFoundError(resource_type="park", resource_id=str(park_id))
        return park

    async def get_active_park_or_raise(self, park_id: UUID) -> Park:
        """Inactive parks are reported as not found."""
        park = await self.get_park_by_id_or_raise(park_id)
        if not park.is_active:
            logger.warning("Park is inactive", extra={"park_id": str(park_id)})
            raise NotFoundError(resource_type="park", resource_id=str(park_id))
        return park

    async def _apply(self, park_id: UUID, changes: dict, operation_name: str) -> Park:
        # Parks carry a rating updated by reviews, so writes share the park's critical section
        async def attempt() -> None:
            async with critical_section(self.db, park_lock_key(park_id)):
                park = await self.get_park_by_id_or_raise(park_id, refresh=True)
                for field, value in changes.items():
                    setattr(park, field, value)
                await self.db.commit()

        try:
            await retry_on_version_conflict(attempt, operation_name)
        except StaleDataError:
            raise ConcurrentModificationError("park", str(park_id), settings.booking_retry_attempts)

        return await self.get_park_by_id_or_raise(park_id, refresh=True)

    async def update_park(self, request: UpdateParkRequest) -> Park:
        """
        Update the fields present in ``request``.

        Raises:
            NotFoundError: If the park does not exist
        """
        changes = request.model_dump(exclude_none=True, exclude={"park_id"})
        park = await self._apply(request.park_id, changes, "update_park")

        logger.info(
            "Park updated",
            extra={"park_id": str(park.id), "fields": sorted(changes)}
        )
        return park

    async def deactivate_park(self, park_id: UUID) -> Park:
        """
        Delist a park. The record stays; new tours and lodges can no longer
        reference it.

        Raises:
            NotFoundError: If the park does not exist
        """
        park = await self._apply(park_id, {"is_active": False}, "deactivate_park")

        logger.info("Park deactivated", extra={"park_id": str(park_id)})
        return park

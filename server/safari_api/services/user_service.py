"""User service for account operations."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..models.user import User, UserRole
from ..schemas.user import CreateUserRequest

logger = logging.getLogger(__name__)


class UserService:
    """Service for user-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, request: CreateUserRequest, current_user: Optional[CurrentUser] = None) -> User:
        """
        Register a user.

        Raises:
            AuthorizationError: If a non-admin tries to create an Admin account
            ConflictError: If the email is already registered
        """
        if request.role == UserRole.ADMIN and not (current_user and current_user.is_admin):
            raise AuthorizationError(detail="Only administrators can create Admin accounts")

        email = request.email.lower()
        existing_user = await self.get_user_by_email(email)
        if existing_user:
            logger.warning(
                "User creation failed - email already registered",
                extra={"email": email, "existing_user_id": str(existing_user.id)}
            )
            raise ConflictError(
                detail=f"User with email '{email}' already exists",
                conflicting_resource={"id": str(existing_user.id), "email": email}
            )

        user = User(
            email=email,
            name=request.name,
            phone=request.phone,
            role=request.role.value,
            company_name=request.company_name,
        )

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "User creation failed due to integrity constraint",
                extra={"email": email, "error": str(e)}
            )
            raise ConflictError(detail=f"User with email '{email}' already exists")

        logger.info(
            "User created successfully",
            extra={"user_id": str(user.id), "role": user.role}
        )
        return user

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id_or_raise(self, user_id: UUID) -> User:
        """
        Get user by ID or raise NotFoundError.

        Raises:
            NotFoundError: If user not found
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            logger.warning("User not found", extra={"user_id": str(user_id)})
            raise NotFoundError(resource_type="user", resource_id=str(user_id))
        return user

    async def get_active_user_or_raise(self, user_id: UUID, role: Optional[UserRole] = None) -> User:
        """
        Get an active user, optionally of a given role.

        Deactivated users and users of another role are reported as not found.
        """
        user = await self.get_user_by_id_or_raise(user_id)
        if not user.is_active or (role is not None and user.role != role):
            logger.warning(
                "User is inactive or has an unexpected role",
                extra={"user_id": str(user_id), "role": user.role, "expected_role": role}
            )
            raise NotFoundError(resource_type="user", resource_id=str(user_id))
        return user

    async def get_user(self, user_id: UUID, current_user: CurrentUser) -> User:
        """Users can read their own profile; admins can read any."""
        if user_id != current_user.user_id and not current_user.is_admin:
            raise AuthorizationError(detail="Users may only view their own profile")
        return await self.get_user_by_id_or_raise(user_id)

    async def deactivate_user(self, user_id: UUID) -> User:
        """Deactivate an account. Callers must be administrators."""
        user = await self.get_user_by_id_or_raise(user_id)
        user.is_active = False
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("User deactivated", extra={"user_id": str(user_id)})
        return user

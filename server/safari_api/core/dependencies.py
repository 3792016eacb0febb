"""FastAPI dependencies for database sessions, authentication, and idempotency."""

from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import get_async_session
from .exceptions import AuthenticationError, AuthorizationError, ValidationError


class CurrentUser(BaseModel):
    """Identity supplied by the bearer token; trusted by the services."""

    user_id: UUID
    role: str
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async for session in get_async_session():
        yield session


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> CurrentUser:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        CurrentUser: Identity decoded from the validated token

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError()

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    user_id = payload.get("sub")
    role = payload.get("role")
    if user_id is None or role is None:
        raise AuthenticationError(detail="Invalid token payload")

    # Check token expiration
    exp = payload.get("exp")
    if exp and datetime.now(timezone.utc).timestamp() > exp:
        raise AuthenticationError(detail="Token has expired")

    try:
        user_uuid = UUID(str(user_id))
    except ValueError:
        raise AuthenticationError(detail="Invalid token subject")

    return CurrentUser(
        user_id=user_uuid,
        role=role,
        email=payload.get("email"),
    )


def require_roles(*roles: str) -> Callable:
    """
    Build a dependency that only admits users holding one of the given roles.

    Admins are always admitted.
    """

    async def dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.is_admin or current_user.role in roles:
            return current_user
        raise AuthorizationError(
            detail=f"Role '{current_user.role}' is not allowed to perform this operation",
            required_permissions=list(roles),
        )

    return dependency


async def get_idempotency_key(
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")
) -> Optional[str]:
    """
    Extract and validate idempotency key from request headers.

    Args:
        idempotency_key: Idempotency key from header

    Returns:
        str: Validated idempotency key or None if not provided

    Raises:
        ValidationError: If idempotency key format is invalid
    """
    if idempotency_key is None:
        return None

    if len(idempotency_key) < 1 or len(idempotency_key) > 255:
        raise ValidationError(
            detail="Idempotency key must be between 1 and 255 characters"
        )

    return idempotency_key


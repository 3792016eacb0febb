"""User-related Pydantic schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from ..models.user import UserRole


class CreateUserRequest(BaseModel):
    """Request schema for registering a user."""

    email: EmailStr = Field(..., description="Login email, unique per user")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    phone: str = Field(..., min_length=1, max_length=32, description="Contact phone number")
    role: UserRole = Field(UserRole.TOURIST, description="Marketplace role")
    company_name: Optional[str] = Field(None, max_length=200, description="Company name for agencies")


class GetUserRequest(BaseModel):
    """Request schema for getting a user."""

    user_id: UUID = Field(..., description="User to retrieve")


class DeactivateUserRequest(BaseModel):
    """Request schema for deactivating a user."""

    user_id: UUID = Field(..., description="User to deactivate")


class User(BaseModel):
    """User response schema."""

    id: str = Field(..., description="Unique user ID")
    email: str = Field(..., description="Login email")
    name: str = Field(..., description="Display name")
    phone: Optional[str] = Field(None, description="Contact phone number")
    role: str = Field(..., description="Marketplace role")
    company_name: Optional[str] = Field(None, description="Company name")
    is_active: bool = Field(..., description="Whether the account is active")
    is_verified: bool = Field(..., description="Whether the account is verified")
    created_at: datetime = Field(..., description="Registration time (ISO 8601)")

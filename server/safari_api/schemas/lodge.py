"""Lodge-related Pydantic schemas."""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from ..models.lodge import LodgeType
from .common import Money, PriceInput


class CreateLodgeRequest(BaseModel):
    """Request schema for creating a lodge."""

    park_id: UUID = Field(..., description="Park the lodge belongs to")
    owner_id: Optional[UUID] = Field(None, description="Owning user; defaults to the caller")
    name: str = Field(..., min_length=1, max_length=100, description="Lodge name")
    description: Optional[str] = Field(None, max_length=2000, description="Lodge description")
    location: str = Field(..., min_length=1, max_length=200, description="Lodge location")
    lodge_type: LodgeType = Field(..., description="Accommodation category")
    capacity: int = Field(..., ge=1, description="Number of guests the lodge sleeps")
    price_per_night: PriceInput = Field(..., description="Nightly price")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Latitude in degrees")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Longitude in degrees")
    contact_email: Optional[EmailStr] = Field(None, description="Reservations email")
    contact_phone: Optional[str] = Field(None, max_length=32, description="Reservations phone")


class GetLodgeRequest(BaseModel):
    """Request schema for getting a lodge."""

    lodge_id: UUID = Field(..., description="Lodge to retrieve")


class Lodge(BaseModel):
    """Lodge response schema."""

    id: str = Field(..., description="Unique lodge ID")
    park_id: str = Field(..., description="Park ID")
    owner_id: Optional[str] = Field(None, description="Owning user ID")
    name: str = Field(..., description="Lodge name")
    description: Optional[str] = Field(None, description="Lodge description")
    location: str = Field(..., description="Lodge location")
    lodge_type: str = Field(..., description="Accommodation category")
    capacity: int = Field(..., description="Guest capacity")
    price_per_night: Money = Field(..., description="Nightly price")
    latitude: Optional[float] = Field(None, description="Latitude in degrees")
    longitude: Optional[float] = Field(None, description="Longitude in degrees")
    contact_email: Optional[str] = Field(None, description="Reservations email")
    contact_phone: Optional[str] = Field(None, description="Reservations phone")
    is_active: bool = Field(..., description="Whether the lodge is listed")
    rating_average: float = Field(..., description="Mean review rating")
    rating_count: int = Field(..., description="Number of ratings")

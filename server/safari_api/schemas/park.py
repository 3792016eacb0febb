"""Park-related Pydantic schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ..core.clock import utcnow


def _not_in_future(year: Optional[int]) -> Optional[int]:
    if year is not None and year > utcnow().year:
        raise ValueError("Established year cannot be in the future")
    return year


class CreateParkRequest(BaseModel):
    """Request schema for creating a park."""

    name: str = Field(..., min_length=1, max_length=100, description="Park name")
    description: str = Field(..., min_length=1, max_length=2000, description="Park description")
    location: str = Field(..., min_length=1, max_length=200, description="Region or country")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")
    area_km2: float = Field(..., ge=0, description="Area in square kilometres")
    established_year: int = Field(..., ge=1800, description="Year the park was established")
    entry_fee_usd: int = Field(0, ge=0, description="Entry fee in USD minor units")
    best_time_to_visit: Optional[str] = Field(None, max_length=200, description="Recommended season")

    @field_validator("established_year")
    @classmethod
    def validate_established_year(cls, v: int) -> int:
        """Reject years in the future."""
        return _not_in_future(v)


class UpdateParkRequest(BaseModel):
    """Request schema for updating a park; omitted fields keep their value."""

    park_id: UUID = Field(..., description="Park to update")
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Park name")
    description: Optional[str] = Field(None, min_length=1, max_length=2000, description="Park description")
    location: Optional[str] = Field(None, min_length=1, max_length=200, description="Region or country")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="Latitude in degrees")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="Longitude in degrees")
    area_km2: Optional[float] = Field(None, ge=0, description="Area in square kilometres")
    established_year: Optional[int] = Field(None, ge=1800, description="Year the park was established")
    entry_fee_usd: Optional[int] = Field(None, ge=0, description="Entry fee in USD minor units")
    best_time_to_visit: Optional[str] = Field(None, max_length=200, description="Recommended season")
    is_active: Optional[bool] = Field(None, description="Whether the park is listed")

    @field_validator("established_year")
    @classmethod
    def validate_established_year(cls, v: Optional[int]) -> Optional[int]:
        return _not_in_future(v)


class DeactivateParkRequest(BaseModel):
    """Request schema for delisting a park."""

    park_id: UUID = Field(..., description="Park to deactivate")


class GetParkRequest(BaseModel):
    """Request schema for getting a park."""

    park_id: UUID = Field(..., description="Park to retrieve")


class Park(BaseModel):
    """Park response schema."""

    id: str = Field(..., description="Unique park ID")
    name: str = Field(..., description="Park name")
    description: str = Field(..., description="Park description")
    location: str = Field(..., description="Region or country")
    latitude: float = Field(..., description="Latitude in degrees")
    longitude: float = Field(..., description="Longitude in degrees")
    area_km2: float = Field(..., description="Area in square kilometres")
    established_year: int = Field(..., description="Year established")
    entry_fee_usd: int = Field(..., description="Entry fee in USD minor units")
    best_time_to_visit: Optional[str] = Field(None, description="Recommended season")
    is_active: bool = Field(..., description="Whether the park is listed")
    rating_average: float = Field(..., description="Mean review rating")
    rating_count: int = Field(..., description="Number of ratings")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")

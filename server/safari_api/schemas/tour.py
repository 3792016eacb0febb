"""Tour-related Pydantic schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from ..models.tour import DifficultyLevel
from .common import Money, PriceInput


class StartDateInput(BaseModel):
    """A scheduled start date; spots default to the tour's maximum."""

    start_date: date = Field(..., description="Calendar day the tour departs")
    available_spots: Optional[int] = Field(None, ge=0, le=50, description="Spots offered on this date")


class CreateTourRequest(BaseModel):
    """Request schema for creating a tour."""

    park_id: UUID = Field(..., description="Park the tour runs in")
    agency_id: Optional[UUID] = Field(None, description="Owning agency; defaults to the caller")
    title: str = Field(..., min_length=1, max_length=100, description="Tour title")
    description: str = Field(..., min_length=1, max_length=2000, description="Tour description")
    duration_days: int = Field(..., ge=1, le=30, description="Length of the tour in days")
    price: PriceInput = Field(..., description="Price per participant")
    max_participants: int = Field(..., ge=1, le=50, description="Maximum participants across the tour")
    difficulty_level: DifficultyLevel = Field(DifficultyLevel.MODERATE, description="Physical difficulty")
    cancellation_policy: Optional[str] = Field(None, max_length=500, description="Cancellation terms")
    start_dates: List[StartDateInput] = Field(default_factory=list, description="Scheduled start dates")

    @field_validator("start_dates")
    @classmethod
    def validate_unique_start_dates(cls, v: List[StartDateInput]) -> List[StartDateInput]:
        """Reject duplicate calendar days."""
        days = [entry.start_date for entry in v]
        if len(days) != len(set(days)):
            raise ValueError("Start dates must be unique")
        return v


class GetTourRequest(BaseModel):
    """Request schema for getting a tour."""

    tour_id: UUID = Field(..., description="Tour to retrieve")


class UpdateTourRequest(BaseModel):
    """Request schema for updating a tour; omitted fields keep their value."""

    tour_id: UUID = Field(..., description="Tour to update")
    title: Optional[str] = Field(None, min_length=1, max_length=100, description="Tour title")
    description: Optional[str] = Field(None, min_length=1, max_length=2000, description="Tour description")
    duration_days: Optional[int] = Field(None, ge=1, le=30, description="Length of the tour in days")
    price: Optional[PriceInput] = Field(None, description="Price per participant")
    max_participants: Optional[int] = Field(None, ge=1, le=50, description="Maximum participants across the tour")
    difficulty_level: Optional[DifficultyLevel] = Field(None, description="Physical difficulty")
    cancellation_policy: Optional[str] = Field(None, min_length=1, max_length=500, description="Cancellation terms")
    is_active: Optional[bool] = Field(None, description="Whether the tour is listed")
    is_available: Optional[bool] = Field(None, description="Whether the tour accepts bookings")


class AddStartDateRequest(BaseModel):
    """Request schema for scheduling a new start date."""

    tour_id: UUID = Field(..., description="Tour to schedule")
    start_date: date = Field(..., description="Calendar day to add")
    available_spots: Optional[int] = Field(None, ge=0, le=50, description="Spots offered on this date")


class RemoveStartDateRequest(BaseModel):
    """Request schema for removing a start date from the schedule."""

    tour_id: UUID = Field(..., description="Tour to update")
    start_date: date = Field(..., description="Calendar day to remove")


class StartDate(BaseModel):
    """Start date response schema."""

    start_date: date = Field(..., description="Calendar day")
    available_spots: int = Field(..., ge=0, description="Spots left on this date")


class Tour(BaseModel):
    """Tour response schema."""

    id: str = Field(..., description="Unique tour ID")
    park_id: str = Field(..., description="Park ID")
    agency_id: str = Field(..., description="Owning agency user ID")
    title: str = Field(..., description="Tour title")
    description: str = Field(..., description="Tour description")
    duration_days: int = Field(..., description="Length in days")
    price: Money = Field(..., description="Price per participant")
    difficulty_level: str = Field(..., description="Physical difficulty")
    cancellation_policy: str = Field(..., description="Cancellation terms")
    max_participants: int = Field(..., description="Maximum participants")
    current_participants: int = Field(..., description="Participants currently booked")
    spots_remaining: int = Field(..., description="Aggregate spots still bookable")
    is_fully_booked: bool = Field(..., description="Whether the aggregate capacity is exhausted")
    is_active: bool = Field(..., description="Whether the tour is listed")
    is_available: bool = Field(..., description="Whether the tour accepts bookings")
    rating_average: float = Field(..., description="Mean review rating")
    rating_count: int = Field(..., description="Number of ratings")
    start_dates: List[StartDate] = Field(..., description="Schedule with per-date spots")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")

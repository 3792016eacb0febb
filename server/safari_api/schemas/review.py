"""Review-related Pydantic schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

MAX_POINT_LENGTH = 200


class RatingInput(BaseModel):
    """Overall score plus optional sub-scores, each 1 to 5."""

    overall: int = Field(..., ge=1, le=5, description="Overall score")
    guide: Optional[int] = Field(None, ge=1, le=5, description="Guide score")
    accommodation: Optional[int] = Field(None, ge=1, le=5, description="Accommodation score")
    food: Optional[int] = Field(None, ge=1, le=5, description="Food score")
    value: Optional[int] = Field(None, ge=1, le=5, description="Value for money score")


class CreateReviewRequest(BaseModel):
    """Request schema for reviewing a booked tour."""

    tour_id: UUID = Field(..., description="Reviewed tour")
    booking_id: UUID = Field(..., description="Booking the review is based on")
    rating: RatingInput = Field(..., description="Scores")
    title: str = Field(..., min_length=1, max_length=100, description="Review title")
    comment: str = Field(..., min_length=1, max_length=1000, description="Review text")
    pros: List[str] = Field(default_factory=list, description="What the reviewer liked")
    cons: List[str] = Field(default_factory=list, description="What the reviewer disliked")

    @field_validator("pros", "cons")
    @classmethod
    def validate_points(cls, v: List[str]) -> List[str]:
        """Trim each point and drop blank ones."""
        points = [point.strip() for point in v if point.strip()]
        if any(len(point) > MAX_POINT_LENGTH for point in points):
            raise ValueError(f"Each point must be at most {MAX_POINT_LENGTH} characters")
        return points


class ListReviewsRequest(BaseModel):
    """Request schema for listing a tour's reviews."""

    tour_id: UUID = Field(..., description="Tour whose reviews to list")


class HelpfulVoteRequest(BaseModel):
    """Request schema for marking or unmarking a review as helpful."""

    review_id: UUID = Field(..., description="Review to vote on")


class RespondToReviewRequest(BaseModel):
    """Request schema for the tour agency's response."""

    review_id: UUID = Field(..., description="Review to respond to")
    text: str = Field(..., min_length=1, max_length=500, description="Response text")


class Review(BaseModel):
    """Review response schema."""

    id: str = Field(..., description="Unique review ID")
    user_id: str = Field(..., description="Reviewer ID")
    tour_id: str = Field(..., description="Reviewed tour ID")
    booking_id: str = Field(..., description="Booking ID")
    rating: RatingInput = Field(..., description="Scores")
    average_rating: float = Field(..., description="Mean of the given scores")
    title: str = Field(..., description="Review title")
    comment: str = Field(..., description="Review text")
    pros: List[str] = Field(..., description="What the reviewer liked")
    cons: List[str] = Field(..., description="What the reviewer disliked")
    is_verified: bool = Field(..., description="Whether the reviewer completed the tour")
    helpful_count: int = Field(..., ge=0, description="Number of helpful votes")
    response_text: Optional[str] = Field(None, description="Agency response")
    responded_at: Optional[datetime] = Field(None, description="Response time (ISO 8601)")
    created_at: datetime = Field(..., description="Creation time (ISO 8601)")


class ReviewList(BaseModel):
    """List of reviews, newest first."""

    reviews: List[Review] = Field(..., description="Reviews")

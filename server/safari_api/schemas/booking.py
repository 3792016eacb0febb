"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.booking import BookingStatus, PaymentMethod
from .common import Money


class Participants(BaseModel):
    """Party composition by age category."""

    adults: int = Field(..., ge=1, le=20, description="Number of adults")
    children: int = Field(0, ge=0, le=20, description="Number of children")
    infants: int = Field(0, ge=0, le=10, description="Number of infants")

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants


class EmergencyContact(BaseModel):
    """Person to contact during the tour."""

    name: str = Field(..., min_length=1, max_length=100, description="Contact name")
    phone: str = Field(..., min_length=1, max_length=32, description="Contact phone")
    relationship: str = Field(..., min_length=1, max_length=50, description="Relationship to the booker")


class CreateBookingRequest(BaseModel):
    """Request schema for booking a tour start date."""

    tour_id: UUID = Field(..., description="Tour to book")
    participants: Participants = Field(..., description="Party composition")
    start_date: Union[datetime, date] = Field(..., description="Start date; time of day is ignored")
    emergency_contact: EmergencyContact = Field(..., description="Emergency contact")
    special_requests: Optional[str] = Field(None, max_length=500, description="Dietary or access requests")
    payment_method: Optional[PaymentMethod] = Field(None, description="Intended payment method")


class CancelBookingRequest(BaseModel):
    """Request schema for cancelling a booking."""

    booking_id: UUID = Field(..., description="Booking to cancel")
    reason: Optional[str] = Field(None, max_length=500, description="Cancellation reason")


class GetBookingRequest(BaseModel):
    """Request schema for getting a booking."""

    booking_id: UUID = Field(..., description="Booking to retrieve")


class ListBookingsRequest(BaseModel):
    """Request schema for listing bookings; admins may list another user's bookings."""

    user_id: Optional[UUID] = Field(None, description="User whose bookings to list; defaults to the caller")


class TransitionBookingRequest(BaseModel):
    """Request schema for an administrative status change."""

    booking_id: UUID = Field(..., description="Booking to update")
    target_status: BookingStatus = Field(..., description="Status to move to")
    refund_amount: Optional[int] = Field(None, ge=0, description="Refund in minor units; defaults to the total price")
    notes: Optional[str] = Field(None, max_length=1000, description="Internal notes")


class Booking(BaseModel):
    """Booking response schema."""

    id: str = Field(..., description="Unique booking ID")
    booking_reference: str = Field(..., description="Human-readable booking reference")
    user_id: str = Field(..., description="Booking user ID")
    tour_id: str = Field(..., description="Booked tour ID")
    participants: Participants = Field(..., description="Party composition")
    total_participants: int = Field(..., ge=1, description="Total spots held")
    start_date: date = Field(..., description="Start day")
    end_date: date = Field(..., description="End day")
    total_price: Money = Field(..., description="Total price")
    status: BookingStatus = Field(..., description="Booking status")
    payment_status: str = Field(..., description="Payment status")
    payment_method: Optional[str] = Field(None, description="Payment method")
    special_requests: Optional[str] = Field(None, description="Special requests")
    emergency_contact: EmergencyContact = Field(..., description="Emergency contact")
    cancellation_reason: Optional[str] = Field(None, description="Cancellation reason")
    cancelled_at: Optional[datetime] = Field(None, description="Cancellation time (ISO 8601)")
    refund_amount: Optional[int] = Field(None, description="Refunded amount in minor units")
    refunded_at: Optional[datetime] = Field(None, description="Refund time (ISO 8601)")
    created_at: datetime = Field(..., description="Booking creation time (ISO 8601)")


class BookingList(BaseModel):
    """List of bookings, newest first."""

    bookings: List[Booking] = Field(..., description="Bookings")

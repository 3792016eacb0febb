"""Service layer package."""

from .booking_service import BookingService
from .idempotency_service import IdempotencyService
from .lodge_service import LodgeService
from .park_service import ParkService
from .review_service import ReviewService
from .tour_service import TourService
from .user_service import UserService

__all__ = [
    "BookingService",
    "IdempotencyService",
    "LodgeService",
    "ParkService",
    "ReviewService",
    "TourService",
    "UserService",
]

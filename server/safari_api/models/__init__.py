"""Models module exporting all database models."""

from .booking import ALLOWED_TRANSITIONS, Booking, BookingStatus, PaymentMethod, PaymentStatus, can_transition
from .idempotency import IdempotencyRecord
from .ledger import CapacityLedgerEntry, LedgerReason
from .lodge import Lodge, LodgeType
from .park import Park
from .review import SUB_SCORES, Review, ReviewHelpfulVote
from .tour import DEFAULT_CANCELLATION_POLICY, DifficultyLevel, Tour, TourStartDate
from .user import User, UserRole

__all__ = [
    # Catalog entities
    "User",
    "UserRole",
    "Park",
    "Lodge",
    "LodgeType",
    "Tour",
    "TourStartDate",
    "DifficultyLevel",
    "DEFAULT_CANCELLATION_POLICY",

    # Booking entities
    "Booking",
    "BookingStatus",
    "PaymentStatus",
    "PaymentMethod",
    "ALLOWED_TRANSITIONS",
    "can_transition",

    # Review entities
    "Review",
    "ReviewHelpfulVote",
    "SUB_SCORES",

    # Capacity audit trail
    "CapacityLedgerEntry",
    "LedgerReason",

    # Idempotency entity
    "IdempotencyRecord",
]

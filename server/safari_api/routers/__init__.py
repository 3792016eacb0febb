"""FastAPI routers package."""

from .booking import router as booking_router
from .health import router as health_router
from .lodge import router as lodge_router
from .metrics import router as metrics_router
from .park import router as park_router
from .review import router as review_router
from .tour import router as tour_router
from .user import router as user_router

__all__ = [
    "booking_router",
    "health_router",
    "lodge_router",
    "metrics_router",
    "park_router",
    "review_router",
    "tour_router",
    "user_router",
]

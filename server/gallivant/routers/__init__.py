"""FastAPI routers package."""

from .health import router as health_router
from .maps import router as maps_router
from .metrics import router as metrics_router
from .review import router as review_router
from .tour import router as tour_router
from .user import router as user_router
from .waypoint import router as waypoint_router

__all__ = [
    "health_router",
    "maps_router",
    "metrics_router",
    "review_router",
    "tour_router",
    "user_router",
    "waypoint_router",
]

"""Service layer package."""

from .review_service import ReviewService
from .tour_service import TourService
from .user_service import UserService

__all__ = [
    "ReviewService",
    "TourService",
    "UserService",
]

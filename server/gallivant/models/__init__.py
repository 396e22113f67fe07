"""Models module exporting all database models."""

from .associations import (
    ChatTour,
    CompletedTour,
    ImageReview,
    ImageTour,
    ImageWaypoint,
    ReviewTour,
    ReviewWaypoint,
    TourWaypoint,
    UserWaypoint,
    WaypointCategory,
)
from .category import Category
from .media import Chat, Image, Review
from .tour import Tour
from .user import User
from .waypoint import Waypoint

__all__ = [
    # Core entities
    "User",
    "Tour",
    "Waypoint",
    "Category",

    # Media and feedback
    "Image",
    "Review",
    "Chat",

    # Join tables
    "UserWaypoint",
    "ImageWaypoint",
    "WaypointCategory",
    "TourWaypoint",
    "CompletedTour",
    "ImageReview",
    "ImageTour",
    "ReviewTour",
    "ReviewWaypoint",
    "ChatTour",
]

"""Tour-related Pydantic schemas."""

from pydantic import Field

from .common import CamelModel


class CreateTourRequest(CamelModel):
    """Request schema for creating a tour."""

    created_by_user_id: int = Field(..., description="Creator's user ID")
    tour_name: str = Field(..., min_length=1, max_length=255, description="Tour name")
    description: str | None = Field(None, max_length=2000, description="Tour description")
    type: str | None = Field(None, max_length=64, description="Tour type, e.g. walking or driving")
    neighborhood: str | None = Field(None, max_length=255, description="Neighborhood the tour covers")
    is_ordered: bool = Field(True, description="Whether the waypoint sequence is significant")
    start_long: float | None = Field(None, ge=-180, le=180, description="Starting longitude")
    start_lat: float | None = Field(None, ge=-90, le=90, description="Starting latitude")


class Tour(CamelModel):
    """Tour response schema."""

    id: int = Field(..., description="Unique tour ID")
    created_by_user_id: int = Field(..., description="Creator's user ID")
    tour_name: str = Field(..., description="Tour name")
    description: str | None = Field(None, description="Tour description")
    type: str | None = Field(None, description="Tour type")
    neighborhood: str | None = Field(None, description="Neighborhood")
    is_ordered: bool = Field(..., description="Whether the waypoint sequence is significant")
    rating_avg: float | None = Field(None, description="Cached average rating")
    completions: int = Field(0, description="Number of completions")
    total_waypoints: int = Field(0, description="Number of waypoints in the tour")
    start_long: float | None = Field(None, description="Starting longitude")
    start_lat: float | None = Field(None, description="Starting latitude")

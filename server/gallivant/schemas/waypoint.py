"""Waypoint-related Pydantic schemas."""

from typing import Any

from pydantic import Field, field_validator

from .common import CamelModel


class WaypointInput(CamelModel):
    """
    Waypoint fields captured by the client.

    Coordinates are optional here so that missing or out-of-range values
    surface as a domain validation error rather than a parse failure.
    """

    waypoint_name: str | None = Field(None, max_length=255, description="Waypoint name")
    description: str | None = Field(None, description="Waypoint description")
    prompt: str | None = Field(None, description="Question shown at the waypoint")
    answer: str | None = Field(None, max_length=255, description="Expected answer to the prompt")
    long: float | None = Field(None, description="Longitude")
    lat: float | None = Field(None, description="Latitude")


class CreateWaypointRequest(CamelModel):
    """Request schema for creating a waypoint and appending it to a tour."""

    waypoint: WaypointInput = Field(..., description="Waypoint to create")
    tour_id: int = Field(..., alias="id_tour", description="Tour to append the waypoint to")


class Waypoint(CamelModel):
    """Waypoint response schema."""

    id: int = Field(..., description="Unique waypoint ID")
    waypoint_name: str | None = Field(None, description="Waypoint name")
    description: str | None = Field(None, description="Waypoint description")
    prompt: str | None = Field(None, description="Question shown at the waypoint")
    answer: str | None = Field(None, description="Expected answer")
    long: float = Field(..., description="Longitude")
    lat: float = Field(..., description="Latitude")
    rating_avg: float | None = Field(None, description="Cached average rating")


class TourWaypoint(Waypoint):
    """Waypoint as a member of a tour, with its sequence position."""

    order: int = Field(..., ge=0, description="0-based position in the tour")


class ReorderWaypointsRequest(CamelModel):
    """Request schema for rewriting a tour's waypoint sequence."""

    new_order: list[int] = Field(..., description="Every waypoint ID of the tour, in the new order")
    tour_id: int = Field(..., description="Tour being reordered")

    @field_validator("new_order", mode="before")
    @classmethod
    def extract_ids(cls, v: Any) -> Any:
        """Accept waypoint objects as well as bare IDs."""
        if isinstance(v, list):
            return [item.get("id") if isinstance(item, dict) else item for item in v]
        return v


class MoveWaypointRequest(CamelModel):
    """Request schema for a single drag-and-drop move."""

    tour_id: int = Field(..., description="Tour being reordered")
    from_index: int = Field(..., ge=0, description="Current position of the dragged waypoint")
    to_index: int = Field(..., ge=0, description="Position it was dropped at")

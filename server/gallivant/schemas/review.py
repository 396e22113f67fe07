"""Review-related Pydantic schemas."""

from enum import Enum

from pydantic import Field, model_validator

from .common import CamelModel


class RatedEntity(str, Enum):
    """Entities that can carry reviews."""
    TOUR = "tour"
    WAYPOINT = "waypoint"


class CreateReviewRequest(CamelModel):
    """Request schema for reviewing a tour or a waypoint."""

    user_id: int = Field(..., description="Author's user ID")
    feedback: str | None = Field(None, max_length=2000, description="Free-text feedback")
    rating: int = Field(..., ge=1, le=5, description="Star rating")
    tour_id: int | None = Field(None, description="Reviewed tour")
    waypoint_id: int | None = Field(None, description="Reviewed waypoint")

    @model_validator(mode="after")
    def exactly_one_target(self) -> "CreateReviewRequest":
        if (self.tour_id is None) == (self.waypoint_id is None):
            raise ValueError("Exactly one of tourId or waypointId must be given")
        return self

    @property
    def target(self) -> tuple[RatedEntity, int]:
        if self.tour_id is not None:
            return RatedEntity.TOUR, self.tour_id
        return RatedEntity.WAYPOINT, self.waypoint_id


class Review(CamelModel):
    """Review response schema."""

    id: int = Field(..., description="Unique review ID")
    user_id: int = Field(..., description="Author's user ID")
    feedback: str | None = Field(None, description="Free-text feedback")
    rating: int = Field(..., description="Star rating")
    entity_type: RatedEntity = Field(..., description="Kind of entity reviewed")
    entity_id: int = Field(..., description="Reviewed entity ID")
    rating_avg: float | None = Field(None, description="Entity's average rating after this review")

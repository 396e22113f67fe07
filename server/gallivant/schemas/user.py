"""User-related Pydantic schemas."""

from pydantic import Field

from .common import CamelModel


class CreateUserRequest(CamelModel):
    """Request schema for creating a user."""

    username: str = Field(..., min_length=1, max_length=255, description="Unique display name")
    email: str | None = Field(None, max_length=255, description="Contact email")


class User(CamelModel):
    """User response schema."""

    id: int = Field(..., description="Unique user ID")
    username: str = Field(..., description="Display name")
    email: str | None = Field(None, description="Contact email")
    current_tour_id: int | None = Field(None, description="Tour currently in progress")


class TourCreator(CamelModel):
    """Display name of a tour's creator."""

    username: str = Field(..., description="Creator's display name")

"""Map interaction schemas."""

from pydantic import Field

from .common import CamelModel


class Coordinate(CamelModel):
    """A clicked geographic point."""

    long: float = Field(..., description="Longitude")
    lat: float = Field(..., description="Latitude")


class Popup(CamelModel):
    """Dismissible info panel attached to a marker."""

    content: str = Field("", description="Text shown in the panel")
    dismissible: bool = Field(True, description="Whether the user can close the panel")


class Marker(CamelModel):
    """One rendered marker, keyed by its waypoint."""

    waypoint_id: int = Field(..., description="Waypoint this marker represents")
    long: float = Field(..., description="Longitude")
    lat: float = Field(..., description="Latitude")
    popup: Popup = Field(default_factory=Popup, description="Info panel")


class DragDrop(CamelModel):
    """A drag-and-drop move and the permutation it produces."""

    from_index: int = Field(..., ge=0, description="Original position")
    to_index: int = Field(..., ge=0, description="Drop position")
    waypoint_ids: list[int] = Field(..., description="Waypoint IDs in the new order")

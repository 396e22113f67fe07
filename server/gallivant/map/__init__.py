"""Map interaction surface and ordering helpers."""

from .geo import validate_coordinates
from .ordering import move_item
from .surface import MapInteractionState, MapSurface, marker_for, markers_for

__all__ = [
    "MapInteractionState",
    "MapSurface",
    "marker_for",
    "markers_for",
    "move_item",
    "validate_coordinates",
]

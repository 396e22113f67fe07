"""
Contract between a map widget and the tour API.

A widget binding (mapbox, leaflet, a test double) implements
:class:`MapSurface`. :class:`MapInteractionState` is the reference
implementation: it holds what the container needs to know and never
persists anything itself.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional, Protocol, Sequence

from ..schemas.map import Coordinate, DragDrop, Marker, Popup
from .geo import validate_coordinates
from .ordering import move_item

logger = logging.getLogger(__name__)


class MappableWaypoint(Protocol):
    """Anything with an id, coordinates and a description."""

    id: int
    long: float
    lat: float
    description: Optional[str]


class MapSurface(ABC):
    """Events a map widget reports and the marker list it renders."""

    @abstractmethod
    def on_click(self, coord: Coordinate) -> None:
        """A single click at a geographic point."""

    @abstractmethod
    def on_drag_drop(self, from_index: int, to_index: int) -> None:
        """A waypoint in the list was dragged from one position to another."""

    @abstractmethod
    def set_markers(self, waypoints: Iterable[MappableWaypoint]) -> None:
        """Render one marker per waypoint."""


def marker_for(waypoint: MappableWaypoint) -> Marker:
    """Build the marker for a waypoint, with its description as popup text."""
    return Marker(
        waypoint_id=waypoint.id,
        long=float(waypoint.long),
        lat=float(waypoint.lat),
        popup=Popup(content=waypoint.description or ""),
    )


class MapInteractionState(MapSurface):
    """
    In-memory map state for a tour view.

    ``on_coordinate`` fires once per click with the new pending coordinate.
    ``on_reorder`` fires once per drop with the move and the resulting id
    order; the container is expected to send that order to the API.
    """

    def __init__(
        self,
        on_coordinate: Optional[Callable[[Coordinate], None]] = None,
        on_reorder: Optional[Callable[[DragDrop], None]] = None,
    ):
        self._on_coordinate = on_coordinate
        self._on_reorder = on_reorder
        self.pending_coordinate: Optional[Coordinate] = None
        self._markers: dict[int, Marker] = {}
        self._sequence: list[int] = []

    @property
    def markers(self) -> list[Marker]:
        """Markers in the order their waypoints were supplied."""
        return [self._markers[waypoint_id] for waypoint_id in self._sequence]

    @property
    def waypoint_ids(self) -> list[int]:
        """Currently displayed waypoint order, including optimistic moves."""
        return list(self._sequence)

    def on_click(self, coord: Coordinate) -> None:
        validate_coordinates(coord.long, coord.lat)
        # Overwrites, never accumulates
        self.pending_coordinate = coord
        if self._on_coordinate:
            self._on_coordinate(coord)

    def clear_pending(self) -> Optional[Coordinate]:
        """Take the pending coordinate, e.g. once a waypoint was saved."""
        coord, self.pending_coordinate = self.pending_coordinate, None
        return coord

    def set_markers(self, waypoints: Iterable[MappableWaypoint]) -> None:
        markers: dict[int, Marker] = {}
        sequence: list[int] = []
        for waypoint in waypoints:
            if waypoint.id in markers:
                logger.debug("Duplicate waypoint in marker list", extra={"waypoint_id": waypoint.id})
                continue
            markers[waypoint.id] = marker_for(waypoint)
            sequence.append(waypoint.id)
        self._markers = markers
        self._sequence = sequence

    def on_drag_drop(self, from_index: int, to_index: int) -> None:
        reordered = move_item(self._sequence, from_index, to_index)
        if from_index == to_index:
            return
        self._sequence = reordered
        drop = DragDrop(from_index=from_index, to_index=to_index, waypoint_ids=list(self._sequence))
        if self._on_reorder:
            self._on_reorder(drop)


def markers_for(waypoints: Sequence[MappableWaypoint]) -> list[Marker]:
    """Marker payloads for a list of waypoints, one per distinct id."""
    state = MapInteractionState()
    state.set_markers(waypoints)
    return state.markers

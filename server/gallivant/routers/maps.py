"""Map router: waypoint data for the map views."""

from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession
from ..map.surface import markers_for
from ..schemas.map import Marker
from ..schemas.waypoint import Waypoint
from ..services.tour_service import TourService
from .converters import waypoint_to_schema

router = APIRouter(prefix="/maps", tags=["maps"])


@router.get("/waypoints", response_model=list[Waypoint])
async def get_all_waypoints(db: AsyncSession = DatabaseSession) -> JSONResponse:
    """Every waypoint, for the global map."""
    waypoints = await TourService(db).get_all_waypoints()
    return JSONResponse(
        status_code=200,
        content=[waypoint_to_schema(waypoint).to_wire() for waypoint in waypoints]
    )


@router.get("/markers", response_model=list[Marker])
async def get_markers(
    tour_id: Optional[int] = Query(None, alias="tourId"),
    db: AsyncSession = DatabaseSession,
) -> JSONResponse:
    """
    Marker payloads keyed by waypoint id.

    Scoped to one tour (in tour order) when ``tourId`` is given.
    """
    tour_service = TourService(db)
    if tour_id is None:
        waypoints = await tour_service.get_all_waypoints()
    else:
        waypoints = [waypoint for waypoint, _ in await tour_service.get_tour_waypoints(tour_id)]

    return JSONResponse(
        status_code=200,
        content=[marker.to_wire() for marker in markers_for(waypoints)]
    )

"""Waypoint router: a tour's waypoint sequence."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import CurrentUser, DatabaseSession, actor_id
from ..core.exceptions import ProblemDetailsException, StorageUnavailableError
from ..schemas.common import Problem
from ..schemas.waypoint import CreateWaypointRequest, MoveWaypointRequest, ReorderWaypointsRequest, TourWaypoint
from ..services.tour_service import TourService
from .converters import tour_waypoint_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/db", tags=["waypoint"])

MUTATION_PROBLEMS = {
    400: {"model": Problem, "description": "Invalid coordinates or order"},
    401: {"model": Problem, "description": "Bearer token missing or invalid"},
    403: {"model": Problem, "description": "Caller did not create the tour"},
    404: {"model": Problem, "description": "Tour or waypoint not found"},
}


def _order_response(tour_id: int, waypoint_ids: list[int]) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={"tourId": tour_id, "newOrder": waypoint_ids}
    )


@router.get("/tourWaypoints/{tour_id}", response_model=list[TourWaypoint])
async def get_tour_waypoints(tour_id: int, db: AsyncSession = DatabaseSession) -> JSONResponse:
    """A tour's waypoints, ascending by position."""
    rows = await TourService(db).get_tour_waypoints(tour_id)
    return JSONResponse(
        status_code=200,
        content=[tour_waypoint_to_schema(waypoint, order).to_wire() for waypoint, order in rows]
    )


@router.post("/waypoint/", response_model=TourWaypoint, status_code=status.HTTP_201_CREATED, responses=MUTATION_PROBLEMS)
async def create_waypoint(
    request: CreateWaypointRequest,
    db: AsyncSession = DatabaseSession,
    user: Optional[dict] = CurrentUser,
) -> JSONResponse:
    """
    Create a waypoint and append it to a tour.

    The waypoint lands after the tour's current last position.
    """
    tour_service = TourService(db)

    try:
        waypoint, order = await tour_service.create_waypoint(
            request.tour_id,
            request.waypoint,
            actor_id=actor_id(user),
        )

        return JSONResponse(
            status_code=201,
            content=tour_waypoint_to_schema(waypoint, order).to_wire()
        )

    except ProblemDetailsException:
        raise

    except OperationalError as e:
        logger.error("Database unavailable during waypoint creation", extra={"error": str(e)})
        raise StorageUnavailableError()

    except Exception as e:
        logger.error(
            "Unexpected error in waypoint creation",
            extra={"tour_id": request.tour_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )


@router.put("/waypointsOrder/", responses=MUTATION_PROBLEMS)
async def reorder_waypoints(
    request: ReorderWaypointsRequest,
    db: AsyncSession = DatabaseSession,
    user: Optional[dict] = CurrentUser,
) -> JSONResponse:
    """
    Persist a tour's full waypoint order.

    ``newOrder`` must list every waypoint of the tour exactly once.
    """
    tour_service = TourService(db)

    try:
        waypoint_ids = await tour_service.reorder_waypoints(
            request.tour_id,
            request.new_order,
            actor_id=actor_id(user),
        )
        return _order_response(request.tour_id, waypoint_ids)

    except ProblemDetailsException:
        raise

    except OperationalError as e:
        logger.error("Database unavailable during reorder", extra={"error": str(e)})
        raise StorageUnavailableError()

    except Exception as e:
        logger.error(
            "Unexpected error in waypoint reorder",
            extra={"tour_id": request.tour_id, "new_order": request.new_order, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )


@router.put("/waypointsOrder/move", responses=MUTATION_PROBLEMS)
async def move_waypoint(
    request: MoveWaypointRequest,
    db: AsyncSession = DatabaseSession,
    user: Optional[dict] = CurrentUser,
) -> JSONResponse:
    """Apply a single drag-and-drop move from fromIndex to toIndex."""
    tour_service = TourService(db)

    try:
        waypoint_ids = await tour_service.move_waypoint(
            request.tour_id,
            request.from_index,
            request.to_index,
            actor_id=actor_id(user),
        )
        return _order_response(request.tour_id, waypoint_ids)

    except ProblemDetailsException:
        raise

    except OperationalError as e:
        logger.error("Database unavailable during waypoint move", extra={"error": str(e)})
        raise StorageUnavailableError()

    except Exception as e:
        logger.error(
            "Unexpected error in waypoint move",
            extra={
                "tour_id": request.tour_id,
                "from_index": request.from_index,
                "to_index": request.to_index,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )


@router.delete("/waypoint/{waypoint_id}/{tour_id}", status_code=status.HTTP_204_NO_CONTENT, responses=MUTATION_PROBLEMS)
async def remove_waypoint(
    waypoint_id: int,
    tour_id: int,
    db: AsyncSession = DatabaseSession,
    user: Optional[dict] = CurrentUser,
) -> Response:
    """Detach a waypoint from a tour; later positions shift up by one."""
    tour_service = TourService(db)

    try:
        await tour_service.remove_waypoint(tour_id, waypoint_id, actor_id=actor_id(user))
        return Response(status_code=204)

    except ProblemDetailsException:
        raise

    except OperationalError as e:
        logger.error("Database unavailable during waypoint removal", extra={"error": str(e)})
        raise StorageUnavailableError()

    except Exception as e:
        logger.error(
            "Unexpected error in waypoint removal",
            extra={"tour_id": tour_id, "waypoint_id": waypoint_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )

"""Tour router: tours and their creators."""

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession
from ..core.exceptions import ProblemDetailsException, StorageUnavailableError
from ..schemas.tour import CreateTourRequest, Tour
from ..schemas.user import TourCreator
from ..services.tour_service import TourService
from .converters import tour_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/db", tags=["tour"])


@router.get("/tours", response_model=list[Tour])
async def list_tours(db: AsyncSession = DatabaseSession) -> JSONResponse:
    """List every tour, newest first."""
    tours = await TourService(db).list_tours()
    return JSONResponse(
        status_code=200,
        content=[tour_to_schema(tour).to_wire() for tour in tours]
    )


@router.get("/tour/{tour_id}", response_model=list[Tour])
async def get_tour(tour_id: int, db: AsyncSession = DatabaseSession) -> JSONResponse:
    """
    Fetch a single tour.

    The row is wrapped in a one-element array.
    """
    tour = await TourService(db).get_tour(tour_id)
    return JSONResponse(
        status_code=200,
        content=[tour_to_schema(tour).to_wire()]
    )


@router.get("/tourCreatedBy/{user_id}", response_model=list[TourCreator])
async def get_tour_creator(user_id: int, db: AsyncSession = DatabaseSession) -> JSONResponse:
    """Resolve the display name of a tour's creator."""
    user = await TourService(db).get_tour_creator(user_id)
    return JSONResponse(
        status_code=200,
        content=[TourCreator(username=user.username).to_wire()]
    )


@router.post("/tour/", response_model=Tour, status_code=status.HTTP_201_CREATED)
async def create_tour(
    request: CreateTourRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """Create a new tour for an existing user."""
    tour_service = TourService(db)

    try:
        tour = await tour_service.create_tour(request)

        return JSONResponse(
            status_code=201,
            content=tour_to_schema(tour).to_wire()
        )

    except ProblemDetailsException:
        raise

    except OperationalError as e:
        logger.error("Database unavailable during tour creation", extra={"error": str(e)})
        raise StorageUnavailableError()

    except Exception as e:
        logger.error(
            "Unexpected error in tour creation",
            extra={
                "tour_name": request.tour_name,
                "created_by_user_id": request.created_by_user_id,
                "error": str(e)
            },
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )

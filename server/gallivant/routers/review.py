"""Review router: writing reviews and reading average ratings."""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession
from ..core.exceptions import ProblemDetailsException, StorageUnavailableError
from ..schemas.review import CreateReviewRequest, RatedEntity, Review
from ..services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["review"])


@router.get("/rating/{entity_id}")
async def get_average_rating(
    entity_id: int,
    entity_type: RatedEntity = Query(RatedEntity.TOUR, alias="type"),
    db: AsyncSession = DatabaseSession,
) -> JSONResponse:
    """
    Average rating of a tour (default) or waypoint.

    The body is a bare number, or null when nothing has been reviewed yet.
    """
    rating = await ReviewService(db).get_average_rating(entity_type, entity_id)
    return JSONResponse(status_code=200, content=rating)


@router.post("/", response_model=Review, status_code=status.HTTP_201_CREATED)
async def create_review(
    request: CreateReviewRequest,
    db: AsyncSession = DatabaseSession,
) -> JSONResponse:
    """Review a tour or a waypoint and refresh its cached rating."""
    try:
        review, rating_avg = await ReviewService(db).create_review(request)
        entity_type, entity_id = request.target

        response_data = Review(
            id=review.id,
            user_id=review.user_id,
            feedback=review.feedback,
            rating=review.rating,
            entity_type=entity_type,
            entity_id=entity_id,
            rating_avg=rating_avg,
        )
        return JSONResponse(
            status_code=201,
            content=response_data.to_wire()
        )

    except ProblemDetailsException:
        raise

    except OperationalError as e:
        logger.error("Database unavailable during review creation", extra={"error": str(e)})
        raise StorageUnavailableError()

    except Exception as e:
        logger.error(
            "Unexpected error in review creation",
            extra={"user_id": request.user_id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )

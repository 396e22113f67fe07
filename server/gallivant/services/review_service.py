"""Review service: writing reviews and deriving average ratings."""

import logging
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError, ReferentialError, ValidationError
from ..core.observability import metrics_collector
from ..models.associations import ReviewTour, ReviewWaypoint
from ..models.media import Review
from ..models.tour import Tour
from ..models.user import User
from ..models.waypoint import Waypoint
from ..schemas.review import CreateReviewRequest, RatedEntity

logger = logging.getLogger(__name__)

_TARGETS = {
    RatedEntity.TOUR: (Tour, ReviewTour, ReviewTour.tour_id),
    RatedEntity.WAYPOINT: (Waypoint, ReviewWaypoint, ReviewWaypoint.waypoint_id),
}


def _entity_type(value: Union[str, RatedEntity]) -> RatedEntity:
    try:
        return RatedEntity(value)
    except ValueError:
        raise ValidationError(
            detail=f"Cannot rate entity type '{value}'",
            errors={"type": [entity.value for entity in RatedEntity]},
        )


class ReviewService:
    """
    Service for reviews and ratings.

    ``rating_avg`` on tours and waypoints is a cache: it is recomputed from
    the review rows on every review write, while :meth:`get_average_rating`
    always aggregates live.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_entity_or_raise(self, entity_type: RatedEntity, entity_id: int) -> Union[Tour, Waypoint]:
        model, _, _ = _TARGETS[entity_type]
        entity = await self.db.get(model, entity_id)
        if entity is None:
            logger.warning(
                "Rated entity not found",
                extra={"entity_type": entity_type.value, "entity_id": entity_id}
            )
            raise NotFoundError(resource_type=entity_type.value, resource_id=entity_id)
        return entity

    async def _average(self, entity_type: RatedEntity, entity_id: int) -> Optional[float]:
        _, join_model, entity_column = _TARGETS[entity_type]
        stmt = (
            select(func.avg(Review.rating))
            .join(join_model, join_model.review_id == Review.id)
            .where(entity_column == entity_id)
        )
        value = (await self.db.execute(stmt)).scalar_one_or_none()
        return float(value) if value is not None else None

    async def get_average_rating(
        self,
        entity_type: Union[str, RatedEntity],
        entity_id: int,
    ) -> Optional[float]:
        """
        Mean rating of a tour or waypoint.

        Returns:
            The mean, or None when the entity has no reviews

        Raises:
            ValidationError: If the entity type is unknown
            NotFoundError: If the entity does not exist
        """
        kind = _entity_type(entity_type)
        await self._get_entity_or_raise(kind, entity_id)
        return await self._average(kind, entity_id)

    async def recompute_rating(
        self,
        entity_type: Union[str, RatedEntity],
        entity_id: int,
    ) -> Optional[float]:
        """Refresh the cached ``rating_avg`` from the review rows; caller commits."""
        kind = _entity_type(entity_type)
        entity = await self._get_entity_or_raise(kind, entity_id)
        entity.rating_avg = await self._average(kind, entity_id)
        return entity.rating_avg

    async def create_review(self, request: CreateReviewRequest) -> tuple[Review, Optional[float]]:
        """
        Write a review for a tour or waypoint and refresh its cached rating.

        Returns:
            The review and the entity's new average rating

        Raises:
            ReferentialError: If the author does not exist
            NotFoundError: If the reviewed entity does not exist
        """
        if await self.db.get(User, request.user_id) is None:
            logger.warning("Review rejected - author does not exist", extra={"user_id": request.user_id})
            raise ReferentialError(parent_type="user", parent_id=request.user_id)

        entity_type, entity_id = request.target
        await self._get_entity_or_raise(entity_type, entity_id)
        _, join_model, _ = _TARGETS[entity_type]

        review = Review(user_id=request.user_id, feedback=request.feedback, rating=request.rating)

        try:
            self.db.add(review)
            await self.db.flush()

            if entity_type is RatedEntity.TOUR:
                self.db.add(join_model(review_id=review.id, tour_id=entity_id))
            else:
                self.db.add(join_model(review_id=review.id, waypoint_id=entity_id))
            await self.db.flush()

            rating_avg = await self.recompute_rating(entity_type, entity_id)

            await self.db.commit()
            await self.db.refresh(review)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Review creation failed due to integrity constraint",
                extra={"entity_type": entity_type.value, "entity_id": entity_id, "error": str(e)}
            )
            raise ReferentialError(parent_type=entity_type.value, parent_id=entity_id)
        except Exception:
            await self.db.rollback()
            raise

        metrics_collector.record_review_created(entity_type.value)
        logger.info(
            "Review created",
            extra={
                "review_id": review.id,
                "entity_type": entity_type.value,
                "entity_id": entity_id,
                "rating": review.rating,
                "rating_avg": rating_avg,
            }
        )
        return review, rating_avg

"""Tour aggregate service: tours, their creators, and their waypoint sequence."""

import logging
from typing import Optional, Sequence

from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import AuthorizationError, NotFoundError, ReferentialError, ValidationError
from ..core.observability import metrics_collector
from ..map.geo import validate_coordinates
from ..map.ordering import move_item
from ..models.associations import TourWaypoint
from ..models.tour import Tour
from ..models.user import User
from ..models.waypoint import Waypoint
from ..schemas.tour import CreateTourRequest
from ..schemas.waypoint import WaypointInput
from .user_service import UserService

logger = logging.getLogger(__name__)

# First key of the two-key advisory lock; the second is the tour id
TOUR_LOCK_NAMESPACE = 7301


class TourService:
    """
    Service for tour-related operations.

    All changes to the ``tours_waypoints`` relation go through here. Every
    write commits once at the end and rolls back on failure, so a caller
    never observes a waypoint without its join row or a half-applied order.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_service = UserService(db)

    # Tours

    async def create_tour(self, request: CreateTourRequest) -> Tour:
        """
        Create a new tour.

        Raises:
            ReferentialError: If the creator does not exist
        """
        creator = await self.user_service.get_user_by_id(request.created_by_user_id)
        if creator is None:
            logger.warning(
                "Tour creation failed - creator does not exist",
                extra={"created_by_user_id": request.created_by_user_id}
            )
            raise ReferentialError(parent_type="user", parent_id=request.created_by_user_id)

        tour = Tour(
            created_by_user_id=request.created_by_user_id,
            tour_name=request.tour_name,
            description=request.description,
            type=request.type,
            neighborhood=request.neighborhood,
            is_ordered=request.is_ordered,
            start_long=request.start_long,
            start_lat=request.start_lat,
            completions=0,
            total_waypoints=0,
        )

        try:
            self.db.add(tour)
            await self.db.commit()
            await self.db.refresh(tour)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Tour creation failed due to integrity constraint",
                extra={"tour_name": request.tour_name, "error": str(e)}
            )
            raise ReferentialError(
                parent_type="user",
                parent_id=request.created_by_user_id,
                detail="Tour creation failed due to constraint violation",
            )

        logger.info(
            "Tour created successfully",
            extra={"tour_id": tour.id, "tour_name": tour.tour_name, "created_by_user_id": tour.created_by_user_id}
        )
        return tour

    async def list_tours(self) -> list[Tour]:
        """All tours, newest first."""
        stmt = select(Tour).order_by(Tour.created_at.desc(), Tour.id.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_tour_by_id(self, tour_id: int) -> Optional[Tour]:
        """
        Get tour by ID.

        Returns:
            Tour if found, None otherwise
        """
        return await self.db.get(Tour, tour_id)

    async def get_tour(self, tour_id: int) -> Tour:
        """
        Get tour by ID or raise NotFoundError.

        Raises:
            NotFoundError: If tour not found
        """
        tour = await self.get_tour_by_id(tour_id)
        if not tour:
            logger.warning("Tour not found", extra={"tour_id": tour_id})
            raise NotFoundError(resource_type="tour", resource_id=tour_id)
        return tour

    async def get_tour_with_lock(self, tour_id: int) -> Tour:
        """
        Get tour by ID with advisory lock for waypoint sequence changes.

        Every change to a tour's waypoint sequence goes through here before
        reading positions. The lock is released at transaction end.

        Raises:
            NotFoundError: If tour not found
        """
        # SQLite (used in tests) serializes writers on its own
        if self.db.bind and self.db.bind.dialect.name == "postgresql":
            await self.db.execute(
                text("SELECT pg_advisory_xact_lock(:namespace, :tour_id)"),
                {"namespace": TOUR_LOCK_NAMESPACE, "tour_id": tour_id}
            )

        tour = await self.get_tour(tour_id)

        logger.debug("Acquired advisory lock for tour", extra={"tour_id": tour_id})
        return tour

    async def get_tour_creator(self, user_id: int) -> User:
        """Resolve the user who created a tour; raises NotFoundError if missing."""
        return await self.user_service.get_user_by_id_or_raise(user_id)

    def ensure_can_edit(self, tour: Tour, actor_id: Optional[int]) -> None:
        """
        Only a tour's creator may change its waypoints.

        Anonymous callers (``actor_id`` None) are let through; whether they
        may reach this point at all is decided by the auth dependency.
        """
        if actor_id is not None and actor_id != tour.created_by_user_id:
            logger.warning(
                "Tour edit rejected - caller is not the creator",
                extra={"tour_id": tour.id, "actor_id": actor_id, "created_by_user_id": tour.created_by_user_id}
            )
            raise AuthorizationError(detail=f"Only the creator of tour {tour.id} can edit its waypoints")

    # Waypoints

    async def get_all_waypoints(self) -> list[Waypoint]:
        """Every waypoint, for the global map view."""
        stmt = select(Waypoint).order_by(Waypoint.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_tour_waypoints(self, tour_id: int) -> list[tuple[Waypoint, int]]:
        """
        A tour's waypoints with their positions, ascending by position.

        Raises:
            NotFoundError: If tour not found
        """
        await self.get_tour(tour_id)

        stmt = (
            select(Waypoint, TourWaypoint.order)
            .join(TourWaypoint, TourWaypoint.waypoint_id == Waypoint.id)
            .where(TourWaypoint.tour_id == tour_id)
            .order_by(TourWaypoint.order, TourWaypoint.id)
        )
        result = await self.db.execute(stmt)
        return [(waypoint, order) for waypoint, order in result.all()]

    async def _links(self, tour_id: int) -> list[TourWaypoint]:
        stmt = (
            select(TourWaypoint)
            .where(TourWaypoint.tour_id == tour_id)
            .order_by(TourWaypoint.order, TourWaypoint.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _next_order(self, tour_id: int) -> int:
        stmt = select(func.max(TourWaypoint.order)).where(TourWaypoint.tour_id == tour_id)
        current_max = (await self.db.execute(stmt)).scalar_one_or_none()
        return 0 if current_max is None else current_max + 1

    async def create_waypoint(
        self,
        tour_id: int,
        data: WaypointInput,
        actor_id: Optional[int] = None,
    ) -> tuple[Waypoint, int]:
        """
        Create a waypoint and append it to a tour.

        Args:
            tour_id: Tour to append to
            data: Name, description and coordinates
            actor_id: Authenticated caller, if any

        Returns:
            The waypoint and its position in the tour

        Raises:
            ValidationError: If coordinates are missing or out of range
            NotFoundError: If tour not found
            AuthorizationError: If the caller is not the tour's creator
        """
        long, lat = validate_coordinates(data.long, data.lat)

        tour = await self.get_tour_with_lock(tour_id)
        self.ensure_can_edit(tour, actor_id)

        waypoint = Waypoint(
            name=data.waypoint_name,
            description=data.description,
            prompt=data.prompt,
            answer=data.answer,
            long=long,
            lat=lat,
        )

        try:
            self.db.add(waypoint)
            await self.db.flush()

            order = await self._next_order(tour_id)
            self.db.add(TourWaypoint(tour_id=tour_id, waypoint_id=waypoint.id, order=order))
            tour.total_waypoints = order + 1

            await self.db.commit()
            await self.db.refresh(waypoint)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "Waypoint creation failed due to integrity constraint",
                extra={"tour_id": tour_id, "error": str(e)}
            )
            raise ReferentialError(
                parent_type="tour",
                parent_id=tour_id,
                detail=f"Waypoint could not be attached to tour {tour_id}",
            )
        except Exception:
            await self.db.rollback()
            raise

        metrics_collector.record_waypoint_created()
        logger.info(
            "Waypoint created and appended to tour",
            extra={"tour_id": tour_id, "waypoint_id": waypoint.id, "order": order, "long": long, "lat": lat}
        )
        return waypoint, order

    async def reorder_waypoints(
        self,
        tour_id: int,
        new_order: Sequence[int],
        actor_id: Optional[int] = None,
    ) -> list[int]:
        """
        Rewrite every position of a tour to match ``new_order``.

        Each waypoint's position becomes its 0-based index in the list. All
        rows change in one transaction; a rejected list changes nothing.

        Returns:
            The waypoint IDs in their new order

        Raises:
            NotFoundError: If the tour is missing or an ID is not in the tour
            ValidationError: If the list has duplicates or the wrong length
            AuthorizationError: If the caller is not the tour's creator
        """
        tour = await self.get_tour_with_lock(tour_id)
        self.ensure_can_edit(tour, actor_id)

        links = await self._links(tour_id)
        by_waypoint = {link.waypoint_id: link for link in links}

        unknown = [waypoint_id for waypoint_id in new_order if waypoint_id not in by_waypoint]
        if unknown:
            logger.warning(
                "Reorder rejected - waypoints not in tour",
                extra={"tour_id": tour_id, "unknown_waypoint_ids": unknown}
            )
            raise NotFoundError(
                resource_type="waypoint",
                resource_id=",".join(str(waypoint_id) for waypoint_id in unknown),
                detail=f"Waypoints {unknown} are not part of tour {tour_id}",
            )

        if len(set(new_order)) != len(new_order):
            raise ValidationError(
                detail="Waypoint order contains duplicate IDs",
                errors={"newOrder": list(new_order)},
            )

        if len(new_order) != len(links):
            logger.warning(
                "Reorder rejected - length mismatch",
                extra={"tour_id": tour_id, "expected": len(links), "received": len(new_order)}
            )
            raise ValidationError(
                detail=f"Tour {tour_id} has {len(links)} waypoints but {len(new_order)} were given",
                errors={"expected": len(links), "received": len(new_order)},
            )

        try:
            for index, waypoint_id in enumerate(new_order):
                link = by_waypoint[waypoint_id]
                if link.order != index:
                    link.order = index
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error("Reorder failed; rolled back", extra={"tour_id": tour_id}, exc_info=True)
            raise

        metrics_collector.record_reorder()
        logger.info(
            "Tour waypoints reordered",
            extra={"tour_id": tour_id, "waypoint_ids": list(new_order)}
        )
        return list(new_order)

    async def move_waypoint(
        self,
        tour_id: int,
        from_index: int,
        to_index: int,
        actor_id: Optional[int] = None,
    ) -> list[int]:
        """
        Apply one drag-and-drop move and persist the resulting order.

        Raises:
            ValidationError: If an index is outside the tour
        """
        await self.get_tour_with_lock(tour_id)
        current = [link.waypoint_id for link in await self._links(tour_id)]
        return await self.reorder_waypoints(tour_id, move_item(current, from_index, to_index), actor_id)

    async def remove_waypoint(
        self,
        tour_id: int,
        waypoint_id: int,
        actor_id: Optional[int] = None,
    ) -> None:
        """
        Detach a waypoint from a tour and close the gap it leaves.

        The waypoint row itself is deleted once no tour references it.

        Raises:
            NotFoundError: If the tour is missing or the waypoint is not in it
            AuthorizationError: If the caller is not the tour's creator
        """
        tour = await self.get_tour_with_lock(tour_id)
        self.ensure_can_edit(tour, actor_id)

        links = await self._links(tour_id)
        target = next((link for link in links if link.waypoint_id == waypoint_id), None)
        if target is None:
            raise NotFoundError(
                resource_type="waypoint",
                resource_id=waypoint_id,
                detail=f"Waypoint '{waypoint_id}' is not part of tour {tour_id}",
            )

        try:
            await self.db.delete(target)
            remaining = [link for link in links if link is not target]
            for index, link in enumerate(remaining):
                if link.order != index:
                    link.order = index
            tour.total_waypoints = len(remaining)
            await self.db.flush()

            references = (
                await self.db.execute(
                    select(func.count()).select_from(TourWaypoint).where(TourWaypoint.waypoint_id == waypoint_id)
                )
            ).scalar_one()
            orphaned = references == 0
            if orphaned:
                waypoint = await self.db.get(Waypoint, waypoint_id)
                if waypoint is not None:
                    await self.db.delete(waypoint)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.error(
                "Waypoint removal failed; rolled back",
                extra={"tour_id": tour_id, "waypoint_id": waypoint_id},
                exc_info=True
            )
            raise

        metrics_collector.record_waypoint_removed()
        logger.info(
            "Waypoint removed from tour",
            extra={"tour_id": tour_id, "waypoint_id": waypoint_id, "waypoint_deleted": orphaned}
        )

"""Model-to-schema conversion shared by the routers."""

from ..models.tour import Tour as TourModel
from ..models.user import User as UserModel
from ..models.waypoint import Waypoint as WaypointModel
from ..schemas.tour import Tour
from ..schemas.user import User
from ..schemas.waypoint import TourWaypoint, Waypoint


def tour_to_schema(tour: TourModel) -> Tour:
    return Tour(
        id=tour.id,
        created_by_user_id=tour.created_by_user_id,
        tour_name=tour.tour_name,
        description=tour.description,
        type=tour.type,
        neighborhood=tour.neighborhood,
        is_ordered=tour.is_ordered,
        rating_avg=tour.rating_avg,
        completions=tour.completions,
        total_waypoints=tour.total_waypoints,
        start_long=tour.start_long,
        start_lat=tour.start_lat,
    )


def user_to_schema(user: UserModel) -> User:
    return User(
        id=user.id,
        username=user.username,
        email=user.email,
        current_tour_id=user.current_tour_id,
    )


def _waypoint_fields(waypoint: WaypointModel) -> dict:
    return {
        "id": waypoint.id,
        "waypoint_name": waypoint.name,
        "description": waypoint.description,
        "prompt": waypoint.prompt,
        "answer": waypoint.answer,
        "long": waypoint.long,
        "lat": waypoint.lat,
        "rating_avg": waypoint.rating_avg,
    }


def waypoint_to_schema(waypoint: WaypointModel) -> Waypoint:
    return Waypoint(**_waypoint_fields(waypoint))


def tour_waypoint_to_schema(waypoint: WaypointModel, order: int) -> TourWaypoint:
    """Waypoint plus its position within a tour."""
    return TourWaypoint(**_waypoint_fields(waypoint), order=order)

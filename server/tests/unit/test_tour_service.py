"""Unit tests for tour service."""

from types import SimpleNamespace

import pytest

from gallivant.core.exceptions import AuthorizationError, NotFoundError, ReferentialError, ValidationError
from gallivant.models import Tour, Waypoint
from gallivant.schemas import CreateTourRequest, CreateUserRequest, WaypointInput
from gallivant.services import TourService, UserService


async def _add_waypoints(service, tour_id, count):
    ids = []
    for i in range(count):
        waypoint, _ = await service.create_waypoint(
            tour_id,
            WaypointInput(waypoint_name=f"Stop {i}", long=-90.0 + i * 0.01, lat=29.9 + i * 0.01),
        )
        ids.append(waypoint.id)
    return ids


async def _order(service, tour_id):
    return [waypoint.id for waypoint, _ in await service.get_tour_waypoints(tour_id)]


@pytest.mark.asyncio
async def test_create_tour(test_session, sample_user, sample_tour_data):
    """Test creating a tour."""
    service = TourService(test_session)

    tour = await service.create_tour(
        CreateTourRequest(created_by_user_id=sample_user.id, **sample_tour_data)
    )

    assert tour.id is not None
    assert tour.tour_name == sample_tour_data["tourName"]
    assert tour.created_by_user_id == sample_user.id
    assert tour.total_waypoints == 0
    assert tour.rating_avg is None


@pytest.mark.asyncio
async def test_create_tour_unknown_creator(test_session, sample_tour_data):
    """Test creating a tour for a missing user raises ReferentialError."""
    service = TourService(test_session)

    with pytest.raises(ReferentialError):
        await service.create_tour(CreateTourRequest(created_by_user_id=999, **sample_tour_data))


@pytest.mark.asyncio
async def test_get_tour(test_session, sample_tour):
    """Test getting a tour by ID."""
    service = TourService(test_session)

    found_tour = await service.get_tour(sample_tour.id)

    assert found_tour.id == sample_tour.id
    assert found_tour.tour_name == sample_tour.tour_name


@pytest.mark.asyncio
async def test_get_tour_not_found(test_session):
    """Test getting a non-existent tour."""
    service = TourService(test_session)

    assert await service.get_tour_by_id(12345) is None
    with pytest.raises(NotFoundError):
        await service.get_tour(12345)


@pytest.mark.asyncio
async def test_get_tour_creator(test_session, sample_tour, sample_user):
    """Test resolving a tour's creator."""
    service = TourService(test_session)

    creator = await service.get_tour_creator(sample_tour.created_by_user_id)
    assert creator.username == sample_user.username

    with pytest.raises(NotFoundError):
        await service.get_tour_creator(999)


@pytest.mark.asyncio
async def test_list_tours(test_session, sample_tour):
    """Test listing tours."""
    tours = await TourService(test_session).list_tours()
    assert [tour.id for tour in tours] == [sample_tour.id]


@pytest.mark.asyncio
async def test_create_waypoint_appends(test_session, sample_tour, sample_waypoint_data):
    """Waypoints land after the current last position, starting at 0."""
    service = TourService(test_session)

    first, first_order = await service.create_waypoint(
        sample_tour.id, WaypointInput(**sample_waypoint_data)
    )
    second, second_order = await service.create_waypoint(
        sample_tour.id, WaypointInput(waypoint_name="Cafe du Monde", long=-90.06, lat=29.96)
    )

    assert first_order == 0
    assert second_order == 1
    assert first.long == -90.05
    assert first.lat == 29.95
    assert first.name == sample_waypoint_data["waypointName"]

    rows = await service.get_tour_waypoints(sample_tour.id)
    assert [(waypoint.id, order) for waypoint, order in rows] == [(first.id, 0), (second.id, 1)]

    tour = await service.get_tour(sample_tour.id)
    assert tour.total_waypoints == 2


@pytest.mark.asyncio
async def test_create_waypoint_missing_tour(test_session, sample_waypoint_data):
    """Test appending to a missing tour."""
    service = TourService(test_session)

    with pytest.raises(NotFoundError):
        await service.create_waypoint(999, WaypointInput(**sample_waypoint_data))


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "long,lat",
    [
        (None, 29.95),
        (-90.05, None),
        (181.0, 29.95),
        (-90.05, -91.0),
    ],
)
async def test_create_waypoint_invalid_coordinates(test_session, sample_tour, long, lat):
    """Missing or out-of-range coordinates are rejected and nothing is written."""
    service = TourService(test_session)

    with pytest.raises(ValidationError):
        await service.create_waypoint(sample_tour.id, WaypointInput(long=long, lat=lat))

    assert await service.get_tour_waypoints(sample_tour.id) == []
    assert await service.get_all_waypoints() == []


@pytest.mark.asyncio
async def test_create_waypoint_by_other_user(test_session, sample_tour, sample_waypoint_data):
    """Only the creator may add waypoints to a tour."""
    other = await UserService(test_session).create_user(CreateUserRequest(username="someone-else"))
    service = TourService(test_session)

    with pytest.raises(AuthorizationError):
        await service.create_waypoint(sample_tour.id, WaypointInput(**sample_waypoint_data), actor_id=other.id)

    waypoint, order = await service.create_waypoint(
        sample_tour.id, WaypointInput(**sample_waypoint_data), actor_id=sample_tour.created_by_user_id
    )
    assert order == 0


@pytest.mark.asyncio
async def test_create_then_reorder(test_session, sample_tour):
    """Create A and B, swap them, and read the swapped order back."""
    service = TourService(test_session)

    a, a_order = await service.create_waypoint(sample_tour.id, WaypointInput(waypoint_name="A", long=-90.05, lat=29.95))
    b, b_order = await service.create_waypoint(sample_tour.id, WaypointInput(waypoint_name="B", long=-90.06, lat=29.96))
    assert (a_order, b_order) == (0, 1)

    result = await service.reorder_waypoints(sample_tour.id, [b.id, a.id])
    assert result == [b.id, a.id]

    rows = await service.get_tour_waypoints(sample_tour.id)
    assert [(waypoint.id, order) for waypoint, order in rows] == [(b.id, 0), (a.id, 1)]


@pytest.mark.asyncio
async def test_reorder_is_idempotent(test_session, sample_tour):
    """Applying the same order twice leaves the same state."""
    service = TourService(test_session)
    ids = await _add_waypoints(service, sample_tour.id, 4)
    new_order = [ids[2], ids[0], ids[3], ids[1]]

    await service.reorder_waypoints(sample_tour.id, new_order)
    await service.reorder_waypoints(sample_tour.id, new_order)

    rows = await service.get_tour_waypoints(sample_tour.id)
    assert [waypoint.id for waypoint, _ in rows] == new_order
    assert [order for _, order in rows] == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_reorder_length_mismatch(test_session, sample_tour):
    """A list that omits a waypoint is rejected and the order is unchanged."""
    service = TourService(test_session)
    ids = await _add_waypoints(service, sample_tour.id, 3)

    with pytest.raises(ValidationError):
        await service.reorder_waypoints(sample_tour.id, [ids[2], ids[1]])

    assert await _order(service, sample_tour.id) == ids


@pytest.mark.asyncio
async def test_reorder_foreign_waypoint(test_session, sample_tour, sample_user):
    """An ID belonging to another tour is reported as not found."""
    service = TourService(test_session)
    ids = await _add_waypoints(service, sample_tour.id, 2)

    other_tour = await service.create_tour(
        CreateTourRequest(created_by_user_id=sample_user.id, tour_name="Garden District")
    )
    foreign = await _add_waypoints(service, other_tour.id, 1)

    with pytest.raises(NotFoundError):
        await service.reorder_waypoints(sample_tour.id, [ids[0], foreign[0]])

    assert await _order(service, sample_tour.id) == ids
    assert await _order(service, other_tour.id) == foreign


@pytest.mark.asyncio
async def test_reorder_duplicates(test_session, sample_tour):
    """Test a list naming one waypoint twice."""
    service = TourService(test_session)
    ids = await _add_waypoints(service, sample_tour.id, 2)

    with pytest.raises(ValidationError):
        await service.reorder_waypoints(sample_tour.id, [ids[0], ids[0]])

    assert await _order(service, sample_tour.id) == ids


@pytest.mark.asyncio
async def test_reorder_missing_tour(test_session):
    """Test reordering a tour that does not exist."""
    with pytest.raises(NotFoundError):
        await TourService(test_session).reorder_waypoints(999, [1, 2])


@pytest.mark.asyncio
async def test_reorder_empty_tour(test_session, sample_tour):
    """An empty tour accepts an empty order."""
    assert await TourService(test_session).reorder_waypoints(sample_tour.id, []) == []


@pytest.mark.asyncio
async def test_move_waypoint(test_session, sample_tour):
    """Test a single drag-and-drop move."""
    service = TourService(test_session)
    ids = await _add_waypoints(service, sample_tour.id, 4)

    result = await service.move_waypoint(sample_tour.id, 0, 2)

    assert result == [ids[1], ids[2], ids[0], ids[3]]
    assert await _order(service, sample_tour.id) == result


@pytest.mark.asyncio
async def test_move_waypoint_out_of_range(test_session, sample_tour):
    """Test moving from an index past the end."""
    service = TourService(test_session)
    ids = await _add_waypoints(service, sample_tour.id, 2)

    with pytest.raises(ValidationError):
        await service.move_waypoint(sample_tour.id, 0, 5)

    assert await _order(service, sample_tour.id) == ids


@pytest.mark.asyncio
async def test_remove_waypoint_closes_gap(test_session, sample_tour):
    """Removing a middle waypoint shifts later ones up and deletes the orphan."""
    service = TourService(test_session)
    ids = await _add_waypoints(service, sample_tour.id, 3)

    await service.remove_waypoint(sample_tour.id, ids[1])

    rows = await service.get_tour_waypoints(sample_tour.id)
    assert [(waypoint.id, order) for waypoint, order in rows] == [(ids[0], 0), (ids[2], 1)]
    assert await test_session.get(Waypoint, ids[1]) is None

    tour = await service.get_tour(sample_tour.id)
    assert tour.total_waypoints == 2

    # Appends continue from the new end
    _, order = await service.create_waypoint(sample_tour.id, WaypointInput(long=-90.0, lat=29.9))
    assert order == 2


@pytest.mark.asyncio
async def test_remove_waypoint_not_in_tour(test_session, sample_tour):
    """Test removing a waypoint the tour does not contain."""
    service = TourService(test_session)
    await _add_waypoints(service, sample_tour.id, 1)

    with pytest.raises(NotFoundError):
        await service.remove_waypoint(sample_tour.id, 999)


@pytest.mark.asyncio
async def test_get_all_waypoints(test_session, sample_tour, sample_user):
    """Every waypoint across tours."""
    service = TourService(test_session)
    first = await _add_waypoints(service, sample_tour.id, 2)

    other_tour = await service.create_tour(
        CreateTourRequest(created_by_user_id=sample_user.id, tour_name="Garden District")
    )
    second = await _add_waypoints(service, other_tour.id, 1)

    waypoints = await service.get_all_waypoints()
    assert [waypoint.id for waypoint in waypoints] == first + second


@pytest.mark.asyncio
async def test_get_tour_with_lock(test_session, sample_tour):
    """Test the locked lookup on a database without advisory locks."""
    service = TourService(test_session)

    tour = await service.get_tour_with_lock(sample_tour.id)
    assert tour.id == sample_tour.id

    with pytest.raises(NotFoundError):
        await service.get_tour_with_lock(999)


class _RecordingSession:
    """Stand-in for a PostgreSQL session that records executed statements."""

    def __init__(self, tour):
        self.bind = SimpleNamespace(dialect=SimpleNamespace(name="postgresql"))
        self.executed = []
        self._tour = tour

    async def execute(self, statement, params=None):
        self.executed.append((str(statement), params))

    async def get(self, model, ident):
        return self._tour if ident == self._tour.id else None


@pytest.mark.asyncio
async def test_get_tour_with_lock_takes_advisory_lock_on_postgres():
    """On PostgreSQL the tour row is guarded by a transaction advisory lock."""
    tour = Tour(id=42, created_by_user_id=1, tour_name="Marigny")
    session = _RecordingSession(tour)

    assert await TourService(session).get_tour_with_lock(42) is tour

    assert len(session.executed) == 1
    statement, params = session.executed[0]
    assert "pg_advisory_xact_lock" in statement
    assert params["tour_id"] == 42


@pytest.mark.asyncio
async def test_create_waypoint_failure_after_insert_leaves_nothing(test_session, sample_tour, monkeypatch):
    """A failure between the waypoint insert and its tour link rolls both back."""
    service = TourService(test_session)
    tour_id = sample_tour.id

    async def failing_next_order(self, tour_id):
        raise RuntimeError("connection dropped")

    monkeypatch.setattr(TourService, "_next_order", failing_next_order)

    with pytest.raises(RuntimeError):
        await service.create_waypoint(tour_id, WaypointInput(long=-90.07, lat=29.95))

    assert await service.get_all_waypoints() == []
    assert await service.get_tour_waypoints(tour_id) == []
    tour = await service.get_tour(tour_id)
    assert tour.total_waypoints == 0

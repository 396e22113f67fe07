"""Integration tests for API endpoints."""

import pytest
from fastapi.routing import APIRoute

from gallivant.core.config import settings
from gallivant.core.database import get_db


async def _create_waypoint(test_client, tour_id, name, long, lat, headers=None):
    response = await test_client.post(
        "/db/waypoint/",
        json={"waypoint": {"waypointName": name, "long": long, "lat": lat}, "id_tour": tour_id},
        headers=headers or {},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_user_endpoint(test_client, sample_user_data):
    """Test the user creation endpoint."""
    response = await test_client.post("/db/user/", json=sample_user_data)

    assert response.status_code == 201
    data = response.json()
    assert data["username"] == sample_user_data["username"]
    assert data["currentTourId"] is None
    assert "id" in data


@pytest.mark.asyncio
async def test_create_user_duplicate(test_client, sample_user_data):
    """Test creating a user whose name is taken."""
    await test_client.post("/db/user/", json=sample_user_data)
    response = await test_client.post("/db/user/", json=sample_user_data)

    assert response.status_code == 409
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["status"] == 409


@pytest.mark.asyncio
async def test_create_tour_endpoint(test_client, sample_user, sample_tour_data):
    """Test the tour creation endpoint."""
    response = await test_client.post(
        "/db/tour/",
        json={**sample_tour_data, "createdByUserId": sample_user.id},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["tourName"] == sample_tour_data["tourName"]
    assert data["createdByUserId"] == sample_user.id
    assert data["totalWaypoints"] == 0
    assert data["ratingAvg"] is None


@pytest.mark.asyncio
async def test_create_tour_unknown_creator(test_client, sample_tour_data):
    """Test creating a tour for a user that does not exist."""
    response = await test_client.post(
        "/db/tour/",
        json={**sample_tour_data, "createdByUserId": 999},
    )

    assert response.status_code == 409
    data = response.json()
    assert data["parent_type"] == "user"


@pytest.mark.asyncio
async def test_create_tour_invalid_data(test_client, sample_user):
    """Test tour creation with invalid data."""
    response = await test_client.post(
        "/db/tour/",
        json={"tourName": "", "createdByUserId": sample_user.id},
    )

    assert response.status_code == 422
    data = response.json()
    assert data["status"] == 422
    assert "violations" in data
    assert any("tourName" in violation["path"] for violation in data["violations"])


@pytest.mark.asyncio
async def test_get_tour_endpoint(test_client, sample_tour):
    """A tour is returned wrapped in a one-element array."""
    response = await test_client.get(f"/db/tour/{sample_tour.id}")

    assert response.status_code == 200
    data = response.json()
    assert isinstance(data, list)
    assert len(data) == 1
    assert data[0]["id"] == sample_tour.id
    assert data[0]["tourName"] == sample_tour.tour_name


@pytest.mark.asyncio
async def test_get_tour_not_found(test_client):
    """Test fetching a tour that does not exist."""
    response = await test_client.get("/db/tour/999")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    data = response.json()
    assert data["status"] == 404
    assert data["resource_type"] == "tour"
    assert data["resource_id"] == "999"


@pytest.mark.asyncio
async def test_get_tour_non_integer_id(test_client):
    """Test a path ID that is not a number."""
    response = await test_client.get("/db/tour/abc")

    assert response.status_code == 422
    assert "violations" in response.json()


@pytest.mark.asyncio
async def test_list_tours_endpoint(test_client, sample_tour):
    """Test listing tours."""
    response = await test_client.get("/db/tours")

    assert response.status_code == 200
    assert [tour["id"] for tour in response.json()] == [sample_tour.id]


@pytest.mark.asyncio
async def test_tour_created_by_endpoint(test_client, sample_tour, sample_user):
    """The creator lookup returns a one-element array with the username."""
    response = await test_client.get(f"/db/tourCreatedBy/{sample_tour.created_by_user_id}")

    assert response.status_code == 200
    assert response.json() == [{"username": sample_user.username}]


@pytest.mark.asyncio
async def test_tour_created_by_unknown_user(test_client):
    """Test the creator lookup for a missing user."""
    response = await test_client.get("/db/tourCreatedBy/999")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_and_reorder_waypoints(test_client, sample_tour):
    """Create two waypoints, swap them, and read the new order back."""
    a = await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)
    b = await _create_waypoint(test_client, sample_tour.id, "B", -90.06, 29.96)

    assert a["order"] == 0
    assert b["order"] == 1
    assert a["long"] == -90.05
    assert a["lat"] == 29.95
    assert a["waypointName"] == "A"

    response = await test_client.put(
        "/db/waypointsOrder/",
        json={"newOrder": [b["id"], a["id"]], "tourId": sample_tour.id},
    )
    assert response.status_code == 200
    assert response.json() == {"tourId": sample_tour.id, "newOrder": [b["id"], a["id"]]}

    response = await test_client.get(f"/db/tourWaypoints/{sample_tour.id}")
    assert response.status_code == 200
    data = response.json()
    assert [(w["id"], w["order"]) for w in data] == [(b["id"], 0), (a["id"], 1)]


@pytest.mark.asyncio
async def test_reorder_accepts_waypoint_objects(test_client, sample_tour):
    """newOrder may carry waypoint objects instead of bare IDs."""
    a = await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)
    b = await _create_waypoint(test_client, sample_tour.id, "B", -90.06, 29.96)

    response = await test_client.put(
        "/db/waypointsOrder/",
        json={"newOrder": [b, a], "tourId": sample_tour.id},
    )

    assert response.status_code == 200
    assert response.json()["newOrder"] == [b["id"], a["id"]]


@pytest.mark.asyncio
async def test_reorder_length_mismatch(test_client, sample_tour):
    """A partial order is rejected and the stored order is untouched."""
    a = await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)
    b = await _create_waypoint(test_client, sample_tour.id, "B", -90.06, 29.96)

    response = await test_client.put(
        "/db/waypointsOrder/",
        json={"newOrder": [b["id"]], "tourId": sample_tour.id},
    )
    assert response.status_code == 400
    assert response.json()["errors"] == {"expected": 2, "received": 1}

    response = await test_client.get(f"/db/tourWaypoints/{sample_tour.id}")
    assert [w["id"] for w in response.json()] == [a["id"], b["id"]]


@pytest.mark.asyncio
async def test_reorder_foreign_waypoint(test_client, sample_tour):
    """Test reordering with an ID outside the tour."""
    a = await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)

    response = await test_client.put(
        "/db/waypointsOrder/",
        json={"newOrder": [a["id"], 999], "tourId": sample_tour.id},
    )

    assert response.status_code == 404
    assert response.json()["resource_type"] == "waypoint"


@pytest.mark.asyncio
async def test_move_waypoint_endpoint(test_client, sample_tour):
    """Test the single-move reorder endpoint."""
    ids = [
        (await _create_waypoint(test_client, sample_tour.id, name, -90.0, 29.9))["id"]
        for name in ("A", "B", "C")
    ]

    response = await test_client.put(
        "/db/waypointsOrder/move",
        json={"tourId": sample_tour.id, "fromIndex": 2, "toIndex": 0},
    )

    assert response.status_code == 200
    assert response.json()["newOrder"] == [ids[2], ids[0], ids[1]]


@pytest.mark.asyncio
async def test_create_waypoint_invalid_coordinates(test_client, sample_tour):
    """Out-of-range coordinates are a 400 with per-field errors."""
    response = await test_client.post(
        "/db/waypoint/",
        json={"waypoint": {"waypointName": "Nowhere", "long": 200, "lat": 29.95}, "id_tour": sample_tour.id},
    )

    assert response.status_code == 400
    data = response.json()
    assert data["type"].endswith("validation-error")
    assert "long" in data["errors"]

    response = await test_client.get(f"/db/tourWaypoints/{sample_tour.id}")
    assert response.json() == []


@pytest.mark.asyncio
async def test_create_waypoint_missing_coordinates(test_client, sample_tour):
    """Test creating a waypoint without coordinates."""
    response = await test_client.post(
        "/db/waypoint/",
        json={"waypoint": {"waypointName": "Nowhere"}, "id_tour": sample_tour.id},
    )

    assert response.status_code == 400
    assert set(response.json()["errors"]) == {"long", "lat"}


@pytest.mark.asyncio
async def test_create_waypoint_missing_tour(test_client):
    """Test creating a waypoint for a tour that does not exist."""
    response = await test_client.post(
        "/db/waypoint/",
        json={"waypoint": {"long": -90.05, "lat": 29.95}, "id_tour": 999},
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_waypoint_as_other_user(test_client, sample_tour, auth_headers):
    """Only the tour's creator may add waypoints when authenticated."""
    response = await test_client.post(
        "/db/waypoint/",
        json={"waypoint": {"long": -90.05, "lat": 29.95}, "id_tour": sample_tour.id},
        headers=auth_headers(sample_tour.created_by_user_id + 100),
    )
    assert response.status_code == 403

    await _create_waypoint(
        test_client, sample_tour.id, "A", -90.05, 29.95,
        headers=auth_headers(sample_tour.created_by_user_id),
    )


@pytest.mark.asyncio
async def test_invalid_bearer_token(test_client, sample_tour):
    """A malformed token is rejected even when auth is optional."""
    response = await test_client.post(
        "/db/waypoint/",
        json={"waypoint": {"long": -90.05, "lat": 29.95}, "id_tour": sample_tour.id},
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401
    data = response.json()
    assert data["status"] == 401
    assert "authentication" in data["title"].lower()


@pytest.mark.asyncio
async def test_missing_token_when_required(test_client, sample_tour, monkeypatch):
    """Test tour mutations without a token when authentication is required."""
    monkeypatch.setattr(settings, "auth_required", True)

    response = await test_client.put(
        "/db/waypointsOrder/",
        json={"newOrder": [], "tourId": sample_tour.id},
    )

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_remove_waypoint_endpoint(test_client, sample_tour):
    """Removing a waypoint closes the gap in positions."""
    ids = [
        (await _create_waypoint(test_client, sample_tour.id, name, -90.0, 29.9))["id"]
        for name in ("A", "B", "C")
    ]

    response = await test_client.delete(f"/db/waypoint/{ids[0]}/{sample_tour.id}")
    assert response.status_code == 204

    response = await test_client.get(f"/db/tourWaypoints/{sample_tour.id}")
    assert [(w["id"], w["order"]) for w in response.json()] == [(ids[1], 0), (ids[2], 1)]


@pytest.mark.asyncio
async def test_tour_waypoints_unknown_tour(test_client):
    """Test listing waypoints of a tour that does not exist."""
    response = await test_client.get("/db/tourWaypoints/999")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rating_endpoint(test_client, sample_tour, sample_user):
    """The rating is null before any review and a bare number afterwards."""
    response = await test_client.get(f"/reviews/rating/{sample_tour.id}")
    assert response.status_code == 200
    assert response.json() is None

    response = await test_client.post(
        "/reviews/",
        json={"userId": sample_user.id, "rating": 4, "feedback": "Lovely", "tourId": sample_tour.id},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["entityType"] == "tour"
    assert data["entityId"] == sample_tour.id
    assert data["ratingAvg"] == 4.0

    response = await test_client.get(f"/reviews/rating/{sample_tour.id}")
    assert response.json() == 4.0

    response = await test_client.get(f"/db/tour/{sample_tour.id}")
    assert response.json()[0]["ratingAvg"] == 4.0


@pytest.mark.asyncio
async def test_waypoint_rating_endpoint(test_client, sample_tour, sample_user):
    """Test the rating of a waypoint via the type query parameter."""
    waypoint = await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)

    await test_client.post(
        "/reviews/",
        json={"userId": sample_user.id, "rating": 2, "waypointId": waypoint["id"]},
    )

    response = await test_client.get(f"/reviews/rating/{waypoint['id']}", params={"type": "waypoint"})
    assert response.status_code == 200
    assert response.json() == 2.0


@pytest.mark.asyncio
async def test_rating_unknown_tour(test_client):
    """Test the rating of a tour that does not exist."""
    response = await test_client.get("/reviews/rating/999")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_review_invalid_rating(test_client, sample_tour, sample_user):
    """Test a star rating outside 1..5."""
    response = await test_client.post(
        "/reviews/",
        json={"userId": sample_user.id, "rating": 9, "tourId": sample_tour.id},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_review_unknown_author(test_client, sample_tour):
    """Test reviewing as a missing user."""
    response = await test_client.post(
        "/reviews/",
        json={"userId": 999, "rating": 3, "tourId": sample_tour.id},
    )

    assert response.status_code == 409
    assert response.json()["parent_type"] == "user"


@pytest.mark.asyncio
async def test_map_waypoints_endpoint(test_client, sample_tour):
    """Every waypoint is available to the global map."""
    a = await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)

    response = await test_client.get("/maps/waypoints")

    assert response.status_code == 200
    data = response.json()
    assert [w["id"] for w in data] == [a["id"]]
    assert data[0]["long"] == -90.05
    assert data[0]["lat"] == 29.95


@pytest.mark.asyncio
async def test_map_markers_endpoint(test_client, sample_tour):
    """Markers for one tour follow the tour's order."""
    a = await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)
    b = await _create_waypoint(test_client, sample_tour.id, "B", -90.06, 29.96)
    await test_client.put(
        "/db/waypointsOrder/",
        json={"newOrder": [b["id"], a["id"]], "tourId": sample_tour.id},
    )

    response = await test_client.get("/maps/markers", params={"tourId": sample_tour.id})

    assert response.status_code == 200
    data = response.json()
    assert [marker["waypointId"] for marker in data] == [b["id"], a["id"]]
    assert data[0]["popup"]["dismissible"] is True


@pytest.mark.asyncio
async def test_metrics_endpoint(test_client, sample_tour):
    """Test the Prometheus metrics endpoint."""
    await _create_waypoint(test_client, sample_tour.id, "A", -90.05, 29.95)

    response = await test_client.get("/metrics")

    assert response.status_code == 200
    assert "tour_waypoints_created_total" in response.text


@pytest.mark.asyncio
async def test_every_route_uses_the_shared_session_dependency(test_app):
    """Routes that take a session all resolve it through the overridable ``get_db``."""
    session_routes = []
    for route in test_app.routes:
        if not isinstance(route, APIRoute):
            continue
        for dependency in route.dependant.dependencies:
            if dependency.name == "db":
                assert dependency.call is get_db, route.path
                session_routes.append(route.path)

    for path in ("/db/tours", "/db/user/", "/db/waypoint/", "/reviews/", "/maps/markers"):
        assert path in session_routes

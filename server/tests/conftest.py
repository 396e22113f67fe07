"""Test configuration and fixtures."""

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gallivant.core.config import settings
from gallivant.core.database import Database, get_db
from gallivant.schemas import CreateTourRequest, CreateUserRequest
from gallivant.services import TourService, UserService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_database():
    """Create a test database with every table."""
    database = Database(TEST_DATABASE_URL)

    # Create tables
    await database.create_all()

    yield database

    # Drop tables
    await database.drop_all()
    await database.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_database):
    """Create a test database session."""
    async with test_database.session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def test_app(test_database, test_session):
    """Create a test FastAPI application bound to the test database."""
    from gallivant.main import create_app

    app = create_app(database=test_database)

    # Override database dependency
    async def override_get_db():
        yield test_session

    app.dependency_overrides[get_db] = override_get_db

    yield app

    # Clean up
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_user_data():
    """Sample user data for testing."""
    return {
        "username": "gallivanter",
        "email": "gallivanter@example.com",
    }


@pytest.fixture
def sample_tour_data():
    """Sample tour data for testing; the creator is filled in by the fixtures."""
    return {
        "tourName": "French Quarter Stroll",
        "description": "A short walk through the Vieux Carre",
        "type": "walking",
        "neighborhood": "French Quarter",
    }


@pytest.fixture
def sample_waypoint_data():
    """Sample waypoint data for testing."""
    return {
        "waypointName": "Jackson Square",
        "description": "Historic park in the heart of the French Quarter",
        "long": -90.05,
        "lat": 29.95,
    }


@pytest_asyncio.fixture
async def sample_user(test_session, sample_user_data):
    """A persisted user."""
    return await UserService(test_session).create_user(CreateUserRequest(**sample_user_data))


@pytest_asyncio.fixture
async def sample_tour(test_session, sample_user, sample_tour_data):
    """A persisted, empty tour created by ``sample_user``."""
    return await TourService(test_session).create_tour(
        CreateTourRequest(created_by_user_id=sample_user.id, **sample_tour_data)
    )


@pytest.fixture
def auth_headers():
    """Build a bearer header for a user id."""
    def _headers(user_id: int) -> dict:
        token = jwt.encode({"sub": str(user_id)}, settings.bearer_token_secret, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers

#!/usr/bin/env python3
"""Setup script for the Gallivant tour API."""

import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from gallivant.core.config import settings
from gallivant.core.database import Database
from gallivant.models import Tour
from gallivant.schemas import CreateTourRequest, CreateUserRequest, WaypointInput
from gallivant.services import TourService, UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

server_dir = Path(__file__).parent.parent / "server"

SAMPLE_WAYPOINTS = [
    ("Jackson Square", "Historic park in the heart of the French Quarter", -90.0630, 29.9574),
    ("St. Louis Cathedral", "Oldest cathedral in continuous use in the United States", -90.0637, 29.9580),
    ("French Market", "Open-air market along the riverfront", -90.0606, 29.9606),
]


def run_migrations():
    """Bring the schema up to the latest revision."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data(database: Database):
    """Create a sample user with one ordered tour."""
    logger.info("Creating sample data...")

    async with database.session_factory() as db:
        existing_tours = (await db.execute(select(func.count()).select_from(Tour))).scalar_one()
        if existing_tours > 0:
            logger.info("Sample data already exists, skipping...")
            return

        user = await UserService(db).create_user(
            CreateUserRequest(username="gallivanter", email="gallivanter@example.com")
        )

        tour_service = TourService(db)
        tour = await tour_service.create_tour(
            CreateTourRequest(
                created_by_user_id=user.id,
                tour_name="French Quarter Stroll",
                description="A short walk through the Vieux Carre",
                type="walking",
                neighborhood="French Quarter",
                start_long=SAMPLE_WAYPOINTS[0][2],
                start_lat=SAMPLE_WAYPOINTS[0][3],
            )
        )

        for name, description, long, lat in SAMPLE_WAYPOINTS:
            await tour_service.create_waypoint(
                tour.id,
                WaypointInput(waypoint_name=name, description=description, long=long, lat=lat),
                actor_id=user.id,
            )

        logger.info(f"Sample data created successfully! Tour id: {tour.id}")


async def main():
    """Main setup function."""
    logger.info("Starting Gallivant API setup...")

    # alembic's async env.py runs its own event loop
    await asyncio.to_thread(run_migrations)

    database = Database(settings.database_url)
    try:
        await database.ping()
        await create_sample_data(database)
    finally:
        await database.dispose()

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: uvicorn gallivant.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())

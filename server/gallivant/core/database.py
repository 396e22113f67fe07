"""Database configuration and async session management."""

import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from .exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all Gallivant models."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite only enforces foreign keys when asked to, per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Engine and session factory for one relational store.

    Built explicitly by the application factory (or a test fixture) and
    handed to whatever needs sessions; nothing here is a module global.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        is_sqlite = url.startswith("sqlite")
        is_memory = is_sqlite and (":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"))

        engine_kwargs = {
            "echo": echo,
            "future": True,
            "pool_pre_ping": not is_sqlite,
        }
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        if is_memory:
            # Every session must see the same in-memory database
            engine_kwargs["poolclass"] = StaticPool

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)

        if is_sqlite:
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            autocommit=False,
        )

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yield a session, rolling back if the caller fails.

        Yields:
            AsyncSession: Database session
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def ping(self) -> None:
        """
        Check that the store accepts connections.

        Raises:
            StorageUnavailableError: If the store cannot be reached
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (DBAPIError, OSError) as e:
            logger.error(
                "Database ping failed",
                extra={"error": str(e)}
            )
            raise StorageUnavailableError(detail=f"Could not connect to the database: {e}") from e

    async def create_all(self) -> None:
        """Create every table declared on the schema metadata."""
        # Register every mapped class before touching the metadata
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        """Drop every table declared on the schema metadata."""
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields a session from the application's database.

    Yields:
        AsyncSession: Database session
    """
    database: Database = request.app.state.database
    async for session in database.session():
        yield session

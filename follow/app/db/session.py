"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support for PostgreSQL.
"""

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from follow.app.core.config import Settings

# Create declarative base for models
Base = declarative_base()


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    The connection pool is the only state shared between requests; its size
    bounds how many storage operations can be in flight at once.
    """
    options = {"echo": settings.db_echo, "future": True}

    if settings.database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection across sessions
        options["connect_args"] = {"check_same_thread": False}
        options["poolclass"] = StaticPool
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        options["pool_timeout"] = settings.db_pool_timeout
        options["pool_pre_ping"] = True

    return create_async_engine(settings.database_url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db(request: Request):
    """
    FastAPI dependency for database sessions.

    Yields an async database session and ensures it's properly closed.
    """
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()

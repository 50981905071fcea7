"""
Centralized Test Configuration.
"""

import secrets

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.pool import Pool

from follow.app.core.config import Settings
from follow.app.db.session import Base
from follow.app.main import create_app
from follow.app.models.device import Device

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def test_settings():
    return Settings(
        database_url=TEST_DATABASE_URL,
        app_environment="development",
        maps_api_key="test-maps-key",
        log_level="DEBUG",
    )


@pytest.fixture
async def app(test_settings):
    """Fresh application and in-memory database per test."""
    application = create_app(test_settings)
    engine = application.state.engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield application

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client(app):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(app):
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture
def make_device(db_session):
    """Factory creating a provisioned device; returns (device, secret)."""
    async def _make_device(api_key=None):
        secret = secrets.token_urlsafe(32).encode("utf-8")
        device = Device(api_key=api_key or secrets.token_urlsafe(12), api_secret=secret)
        db_session.add(device)
        await db_session.commit()
        return device, secret

    return _make_device

"""
Shared pytest configuration for backend tests.

Service tests run against an in-memory key-value adapter; the SQL adapter is
exercised against an in-memory SQLite engine, so no external database is
needed.
"""

import os

# Must be set before the API package is imported (rate limiter, engine URL)
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from padel_backend.database.db import Base
from padel_backend.models.schemas import PadelLevel, Role
from padel_backend.services.club_store import ClubStore
from padel_backend.services.storage_service import InMemoryKeyValueStore
from padel_backend.tests.factories import make_player


@pytest.fixture
def admin():
    return make_player("Club Admin", "900000000", password="admin1", role=Role.ADMIN, id="admin")


@pytest.fixture
def alice():
    return make_player("Alice Alpha", "111", id="alice")


@pytest.fixture
def bob():
    return make_player("Bob Beta", "222", password="abcd", id="bob", level=PadelLevel.LEVEL_2)


@pytest.fixture
def carol():
    return make_player("Carol Gamma", "333", password="carol1", id="carol", level=PadelLevel.LEVEL_6)


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv, admin, alice, bob, carol):
    """Club with an admin and three players, no bookings, nobody logged in."""
    return ClubStore(kv, players=[admin, alice, bob, carol])


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,  # one shared connection keeps the in-memory database alive
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        from padel_backend.database import models  # noqa: F401

        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

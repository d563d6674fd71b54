"""Pytest configuration and fixtures."""

import asyncio
import sys
from datetime import datetime, UTC

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import models  # noqa: F401  registers every table on Base.metadata
from api.deps import get_repository
from db import Base
from main import app
from models.control import ControlDescriptor
from models.control_records import ControlRecords
from repos.sampling_repo import InMemorySamplingRepository

# Fix Windows asyncio event loop
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Repository tests run against in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

NOW = datetime(2025, 1, 15, 9, 0, tzinfo=UTC)


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """Create a test database session on a fresh in-memory database."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def repo():
    return InMemorySamplingRepository()


@pytest.fixture
def override_get_repository(repo):
    """Serve API requests from the in-memory repository."""

    async def _get_repository():
        return repo

    app.dependency_overrides[get_repository] = _get_repository
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_get_repository):
    """Create a test client with the repository override."""
    return TestClient(app)


def make_records(
    control_id: str = "CTRL-001",
    frequency_label: str = "Quarterly",
    risk_rating: str | None = "H",
) -> ControlRecords:
    """Bundle holding only a registered descriptor."""
    return ControlRecords(
        control_id=control_id,
        descriptor=ControlDescriptor(
            control_id=control_id,
            name=f"Control {control_id}",
            frequency_label=frequency_label,
            risk_rating=risk_rating,
            created_at=NOW,
        ),
    )

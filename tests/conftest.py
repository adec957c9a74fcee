# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- In-memory progress store (SQLite through aiosqlite)
- Fixed clocks and caller identities
- Analytics settings with default thresholds
"""

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from src.core.config.settings import AnalyticsSettings
from src.domains.auth.identity import Identity, Role
from src.infrastructure.database.connection import create_sessionmaker
from src.infrastructure.database.models.base import Base

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FIXED_NOW = datetime(2025, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory store with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a session configured like the application sessionmaker."""
    sessionmaker = create_sessionmaker(db_engine)

    async with sessionmaker() as session:
        yield session
        await session.rollback()


# =============================================================================
# Clock Fixtures
# =============================================================================


class FakeClock:
    """Settable clock for services that take a ``clock`` callable."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock fixed at FIXED_NOW."""
    return FakeClock(FIXED_NOW)


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Provide a clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


# =============================================================================
# Settings and Identity Fixtures
# =============================================================================


@pytest.fixture
def analytics_settings() -> AnalyticsSettings:
    """Provide analytics settings with the default thresholds."""
    return AnalyticsSettings()


@pytest.fixture
def student() -> Identity:
    """Provide a student identity."""
    return Identity(subject_id="student-1", role=Role.STUDENT)


@pytest.fixture
def other_student() -> Identity:
    """Provide a second student identity."""
    return Identity(subject_id="student-2", role=Role.STUDENT)


@pytest.fixture
def teacher() -> Identity:
    """Provide a teacher identity."""
    return Identity(subject_id="teacher-1", role=Role.TEACHER)


@pytest.fixture
def admin() -> Identity:
    """Provide an admin identity."""
    return Identity(subject_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def interaction_data() -> dict[str, Any]:
    """Provide raw fields of a correct quiz interaction."""
    return {
        "subject_name": "Mathematics",
        "grade": 5,
        "topic_title": "Fractions",
        "interaction_type": "quiz_attempt",
        "is_correct": True,
    }


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (HTTP layer)"
    )

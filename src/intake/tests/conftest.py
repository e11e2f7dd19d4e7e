"""
Core pytest configuration for the entire test suite.

This module provides only the essential database setup and core utilities
that are needed across ALL types of tests (repositories, services, APIs, ...).

Domain-specific fixtures are located in:
- tests/test_fixtures/repository_fixtures.py
- tests/test_fixtures/service_fixtures.py
- tests/test_fixtures/api_fixtures.py
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Keep this block above the intake.* imports so collection stays quiet.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from faker import Faker
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from intake.config.settings import Settings
from intake.core.logging.builder import setup_logging
from intake.database.base import Base
from intake import models  # noqa: F401 – import to register models with Base.metadata

# In-memory SQLite; StaticPool keeps the single connection (and therefore the data)
# alive for every session opened on the engine during one test.
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings for the test run. `_env_file=None` so a developer's .env never leaks in.
    """
    return Settings(
        _env_file=None,
        ENV="testing",
        TESTING=True,
        DATABASE_URL_OVERRIDE=TEST_DATABASE_URL,
        LOG_LEVEL="INFO",
        LOG_FORMAT="json",
        LOG_TO_STDOUT=True,
        JWT_SECRET="test-secret",
        BCRYPT_ROUNDS=4,
        DEFAULT_PAGE_SIZE=10,
        MAX_PAGE_SIZE=50,
        MAX_AVATAR_BYTES=1024,
    )


@pytest.fixture(scope="session", autouse=True)
def configure_logging(test_settings: Settings):
    """
    Install the application's dictConfig-based logging once for the session, so the
    same formatters and filters used in the app are active in tests.
    """
    setup_logging(test_settings)
    yield


@pytest.fixture(scope="session")
def fake() -> Faker:
    faker = Faker()
    Faker.seed(1234)
    return faker


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------

@pytest.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """A fresh in-memory database per test: full isolation, nothing to clean up."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture()
def session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def file_session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Sessions on a file-backed database, each with its own connection, for tests
    that run several sessions at once.

    Transactions open with BEGIN IMMEDIATE, so a second writer waits for the lock
    (up to `timeout` seconds) instead of failing with "database is locked".
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture()
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


# Domain fixtures, registered globally
from .test_fixtures.repository_fixtures import (  # noqa: E402
    application_repository,
    user_repository,
    application_data,
    user_data,
    create_application,
    create_user,
)
from .test_fixtures.service_fixtures import (  # noqa: E402
    FakeUploader,
    hasher,
    fake_uploader,
    application_service,
    user_service,
)
from .test_fixtures.api_fixtures import (  # noqa: E402
    app,
    client,
    auth_headers,
    admin_user,
    regular_user,
    admin_headers,
    user_headers,
)

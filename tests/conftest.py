"""Pytest configuration and fixtures for result service tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from result_service.config import Settings
from result_service.models import Base
from result_service.repositories import (
    AliasRepository,
    CheckResultTaskRepository,
    ExternalMatchRepository,
    MatchRepository,
    SubscriptionRepository,
)
from result_service.services.fotmob_client import FotmobClient
from result_service.services.task_scheduler import TaskScheduler


@pytest.fixture
def settings():
    """Settings with the default result check schedule (115m, then every 15m)."""
    return Settings(
        _env_file=None,
        secret_key="test-secret",
        hashed_api_keys="",
        result_check_first_attempt_delay_minutes=115,
        result_check_interval_minutes=15,
    )


@pytest.fixture
def tomorrow_18():
    """Tomorrow at 18:00 UTC."""
    tomorrow = datetime.now(timezone.utc).date() + timedelta(days=1)
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def match_repository():
    return AsyncMock(spec=MatchRepository)


@pytest.fixture
def external_match_repository():
    return AsyncMock(spec=ExternalMatchRepository)


@pytest.fixture
def check_result_task_repository():
    return AsyncMock(spec=CheckResultTaskRepository)


@pytest.fixture
def subscription_repository():
    return AsyncMock(spec=SubscriptionRepository)


@pytest.fixture
def alias_repository():
    return AsyncMock(spec=AliasRepository)


@pytest.fixture
def fotmob_client():
    return AsyncMock(spec=FotmobClient)


@pytest.fixture
def task_scheduler():
    return AsyncMock(spec=TaskScheduler)


@pytest.fixture
def celery_app():
    return MagicMock()


@pytest_asyncio.fixture
async def db_session():
    """In-memory SQLite session with the full schema and foreign keys enforced."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()

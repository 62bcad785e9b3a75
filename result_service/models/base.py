"""Engine, sessions and declarative base.

The API shares one engine per process. Each Celery task runs its own event
loop through ``asyncio.run``, so it gets a short-lived engine of its own.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from result_service.config import get_settings

settings = get_settings()


def get_engine():
    """Async engine bound to the event loop that first uses it."""
    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        echo=settings.debug,
    )


def get_session_factory(engine=None):
    """Create a session factory for the given engine."""
    if engine is None:
        engine = get_engine()
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# Engine and session factory shared by the API routes
engine = get_engine()
async_session_factory = get_session_factory(engine)


@asynccontextmanager
async def get_task_session():
    """
    Session for one CheckResult, NotifySubscriber or backfill run.

    The engine is disposed on exit, before ``asyncio.run`` closes the loop its
    connections belong to.
    """
    task_engine = get_engine()
    task_session_factory = get_session_factory(task_engine)
    async with task_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
    await task_engine.dispose()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class CreatedAtMixin:
    """Server-side creation time for matches, task rows and subscriptions."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for the repositories; rolled back if the route raises."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

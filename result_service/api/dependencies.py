"""FastAPI dependencies for the result service."""

from collections.abc import AsyncGenerator

import redis.asyncio as redis
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from result_service.config import get_settings
from result_service.models.base import get_db
from result_service.repositories import (
    AliasRepository,
    CheckResultTaskRepository,
    ExternalMatchRepository,
    MatchRepository,
    SubscriptionRepository,
)
from result_service.services.alias import AliasService
from result_service.services.fotmob_client import FotmobClient
from result_service.services.match import MatchService
from result_service.services.subscription import SubscriptionService
from result_service.services.task_scheduler import TaskScheduler
from result_service.tasks import celery_app


async def get_redis() -> AsyncGenerator[redis.Redis, None]:
    """Get Redis client dependency."""
    settings = get_settings()
    client = redis.from_url(settings.redis_url)
    try:
        yield client
    finally:
        await client.aclose()


async def get_fotmob_client() -> AsyncGenerator[FotmobClient, None]:
    """Get FotMob client dependency."""
    async with FotmobClient(settings=get_settings()) as client:
        yield client


def get_task_scheduler(
    redis_client: redis.Redis = Depends(get_redis),
) -> TaskScheduler:
    return TaskScheduler(celery_app, redis_client, get_settings())


def get_alias_service(db: AsyncSession = Depends(get_db)) -> AliasService:
    return AliasService(AliasRepository(db))


def get_match_service(
    db: AsyncSession = Depends(get_db),
    fotmob: FotmobClient = Depends(get_fotmob_client),
    scheduler: TaskScheduler = Depends(get_task_scheduler),
) -> MatchService:
    return MatchService(
        alias_service=AliasService(AliasRepository(db)),
        match_repository=MatchRepository(db),
        external_match_repository=ExternalMatchRepository(db),
        check_result_task_repository=CheckResultTaskRepository(db),
        fotmob_client=fotmob,
        task_scheduler=scheduler,
        settings=get_settings(),
    )


def get_subscription_service(
    db: AsyncSession = Depends(get_db),
    scheduler: TaskScheduler = Depends(get_task_scheduler),
) -> SubscriptionService:
    return SubscriptionService(
        alias_repository=AliasRepository(db),
        match_repository=MatchRepository(db),
        subscription_repository=SubscriptionRepository(db),
        task_scheduler=scheduler,
    )

"""Result check task.

Runs ResultCheckerService.check_result for one match at the ETA chosen by the
TaskScheduler. Delivery is at least once; duplicate runs are no-ops once the
match has left the ``scheduled`` status.
"""

import asyncio

import redis.asyncio as redis
import structlog
from sqlalchemy.exc import SQLAlchemyError

from result_service.config import get_settings
from result_service.errors import UpstreamError
from result_service.models.base import get_task_session
from result_service.repositories import (
    CheckResultTaskRepository,
    ExternalMatchRepository,
    MatchRepository,
    SubscriptionRepository,
)
from result_service.services.fotmob_client import FotmobClient
from result_service.services.result_checker import ResultCheckerService
from result_service.services.task_scheduler import CHECK_RESULT_TASK, TaskScheduler
from result_service.tasks import celery_app

logger = structlog.get_logger(__name__)

TRANSIENT_ERRORS = (UpstreamError, SQLAlchemyError)


async def _check_result_async(match_id: int) -> None:
    settings = get_settings()
    redis_client = redis.from_url(settings.redis_url)

    try:
        async with get_task_session() as session:
            async with FotmobClient(settings=settings) as fotmob:
                service = ResultCheckerService(
                    match_repository=MatchRepository(session),
                    external_match_repository=ExternalMatchRepository(session),
                    check_result_task_repository=CheckResultTaskRepository(session),
                    subscription_repository=SubscriptionRepository(session),
                    fotmob_client=fotmob,
                    task_scheduler=TaskScheduler(celery_app, redis_client, settings),
                    settings=settings,
                )
                await service.check_result(match_id)
    finally:
        await redis_client.aclose()


@celery_app.task(
    bind=True,
    name=CHECK_RESULT_TASK,
    max_retries=get_settings().result_check_max_retries,
)
def check_result_task(self, match_id: int) -> None:
    """Poll the provider for the result of one match."""
    try:
        asyncio.run(_check_result_async(match_id))
    except TRANSIENT_ERRORS as e:
        logger.error(
            "check_result_task_failed",
            match_id=match_id,
            error=str(e),
            task_id=self.request.id,
            retries=self.request.retries,
        )
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e, countdown=60 * 2**self.request.retries)
        raise
    except Exception as e:
        logger.error(
            "check_result_task_failed",
            match_id=match_id,
            error=str(e),
            task_id=self.request.id,
        )
        raise

    logger.info("check_result_task_complete", match_id=match_id, task_id=self.request.id)

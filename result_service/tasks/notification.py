"""Subscriber notification task."""

import asyncio

import structlog
from sqlalchemy.exc import SQLAlchemyError

from result_service.config import get_settings
from result_service.errors import UpstreamError
from result_service.models.base import get_task_session
from result_service.repositories import MatchRepository, SubscriptionRepository
from result_service.services.notifier import NotifierClient
from result_service.services.subscriber_notifier import SubscriberNotifierService
from result_service.services.task_scheduler import NOTIFY_SUBSCRIBER_TASK
from result_service.tasks import celery_app

logger = structlog.get_logger(__name__)

TRANSIENT_ERRORS = (UpstreamError, SQLAlchemyError)


async def _notify_subscriber_async(subscription_id: int) -> None:
    async with get_task_session() as session:
        async with NotifierClient(settings=get_settings()) as notifier:
            service = SubscriberNotifierService(
                subscription_repository=SubscriptionRepository(session),
                match_repository=MatchRepository(session),
                notifier_client=notifier,
            )
            await service.notify_subscriber(subscription_id)


@celery_app.task(
    bind=True,
    name=NOTIFY_SUBSCRIBER_TASK,
    max_retries=get_settings().result_check_max_retries,
)
def notify_subscriber_task(self, subscription_id: int) -> None:
    """Deliver the final score to one subscriber."""
    try:
        asyncio.run(_notify_subscriber_async(subscription_id))
    except TRANSIENT_ERRORS as e:
        logger.error(
            "notify_subscriber_task_failed",
            subscription_id=subscription_id,
            error=str(e),
            task_id=self.request.id,
            retries=self.request.retries,
        )
        if self.request.retries < self.max_retries:
            raise self.retry(exc=e, countdown=60 * 2**self.request.retries)
        raise
    except Exception as e:
        logger.error(
            "notify_subscriber_task_failed",
            subscription_id=subscription_id,
            error=str(e),
            task_id=self.request.id,
        )
        raise

    logger.info(
        "notify_subscriber_task_complete",
        subscription_id=subscription_id,
        task_id=self.request.id,
    )

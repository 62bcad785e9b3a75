"""Named, idempotent push tasks on top of Celery.

Celery delivers a task at or after its ETA, at least once. It has no notion of
"this task already exists", so every task name is claimed in Redis with
``SET NX`` first; a second claim of the same name is reported as
TaskAlreadyExistsError and no second message is sent.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import redis.asyncio as redis
import structlog
from celery import Celery
from redis.exceptions import RedisError

from result_service.config import Settings, get_settings
from result_service.errors import AlreadyExistsError, NotFoundError, UpstreamError

logger = structlog.get_logger(__name__)

CHECK_RESULT_TASK = "result_service.tasks.result_check.check_result_task"
NOTIFY_SUBSCRIBER_TASK = "result_service.tasks.notification.notify_subscriber_task"

CLAIM_KEY_PREFIX = "scheduled_task:"


class TaskAlreadyExistsError(AlreadyExistsError):
    """A task with this name has already been scheduled."""


class SchedulerError(UpstreamError):
    """The task could not be claimed, sent or revoked."""


@dataclass
class ScheduledTask:
    """Handle of a scheduled task."""

    name: str
    execute_at: datetime


def result_check_task_name(match_id: int, attempt: int) -> str:
    return f"match-{match_id}-attempt-{attempt}"


def subscriber_notification_task_name(subscription_id: int) -> str:
    return f"subscription-{subscription_id}"


class TaskScheduler:
    """
    Schedules CheckResult and NotifySubscriber executions.

    Args:
        celery_app: Celery application used to send and revoke tasks
        redis_client: Redis client holding the task name claims
        settings: Queue names and claim TTL
    """

    def __init__(
        self,
        celery_app: Celery,
        redis_client: redis.Redis,
        settings: Settings | None = None,
    ):
        self.celery_app = celery_app
        self.redis = redis_client
        self.settings = settings or get_settings()

    @property
    def claim_ttl(self) -> timedelta:
        return timedelta(hours=self.settings.task_claim_ttl_hours)

    async def _claim(self, name: str, execute_at: datetime) -> None:
        value = json.dumps({"execute_at": execute_at.isoformat()})

        try:
            claimed = await self.redis.set(
                CLAIM_KEY_PREFIX + name, value, nx=True, ex=self.claim_ttl
            )
        except RedisError as e:
            raise SchedulerError(f"unable to claim task {name}: {e}") from e

        if not claimed:
            raise TaskAlreadyExistsError(f"task {name} already exists")

    async def _release(self, name: str) -> None:
        try:
            await self.redis.delete(CLAIM_KEY_PREFIX + name)
        except RedisError as e:
            logger.error("task_claim_release_failed", task_name=name, error=str(e))

    async def _schedule(
        self,
        name: str,
        task: str,
        kwargs: dict,
        execute_at: datetime,
        queue: str,
        eta: datetime | None = None,
    ) -> ScheduledTask:
        await self._claim(name, execute_at)

        try:
            self.celery_app.send_task(
                task,
                kwargs=kwargs,
                task_id=name,
                eta=eta,
                queue=queue,
            )
        except Exception as e:
            await self._release(name)
            raise SchedulerError(f"unable to send task {name}: {e}") from e

        logger.info(
            "task_scheduled",
            task_name=name,
            execute_at=execute_at.isoformat(),
            queue=queue,
        )
        return ScheduledTask(name=name, execute_at=execute_at)

    async def schedule_result_check(
        self, match_id: int, attempt: int, schedule_at: datetime
    ) -> ScheduledTask:
        """
        Schedule CheckResult of a match at ``schedule_at``.

        Raises:
            TaskAlreadyExistsError: if this attempt is already scheduled
            SchedulerError: if the task could not be claimed or sent
        """
        schedule_at = schedule_at.astimezone(timezone.utc)
        return await self._schedule(
            result_check_task_name(match_id, attempt),
            CHECK_RESULT_TASK,
            {"match_id": match_id},
            execute_at=schedule_at,
            queue=self.settings.check_result_queue,
            eta=schedule_at,
        )

    async def get_result_check_task(self, match_id: int, attempt: int) -> ScheduledTask:
        """
        Raises:
            NotFoundError: if this attempt was never scheduled or its claim expired
            SchedulerError: if Redis is unreachable
        """
        name = result_check_task_name(match_id, attempt)

        try:
            value = await self.redis.get(CLAIM_KEY_PREFIX + name)
        except RedisError as e:
            raise SchedulerError(f"unable to read task {name}: {e}") from e

        if value is None:
            raise NotFoundError(f"task {name} not found")

        data = json.loads(value)
        return ScheduledTask(
            name=name, execute_at=datetime.fromisoformat(data["execute_at"])
        )

    async def schedule_subscriber_notification(
        self, subscription_id: int
    ) -> ScheduledTask:
        """
        Schedule NotifySubscriber of a subscription right away.

        Raises:
            TaskAlreadyExistsError: if a notification was already scheduled
            SchedulerError: if the task could not be claimed or sent
        """
        return await self._schedule(
            subscriber_notification_task_name(subscription_id),
            NOTIFY_SUBSCRIBER_TASK,
            {"subscription_id": subscription_id},
            execute_at=datetime.now(timezone.utc),
            queue=self.settings.notify_subscriber_queue,
        )

    async def delete_task(self, name: str) -> None:
        """
        Revoke a task and drop its claim.

        Raises:
            SchedulerError: if the task could not be revoked
        """
        try:
            self.celery_app.control.revoke(name)
        except Exception as e:
            raise SchedulerError(f"unable to revoke task {name}: {e}") from e

        await self._release(name)
        logger.info("task_deleted", task_name=name)

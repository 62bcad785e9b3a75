"""Result polling for scheduled matches.

``check_result`` runs once per scheduled attempt. Celery may deliver an
attempt more than once or late, so only a ``scheduled`` match is acted on.
Depending on the provider status the match is polled again, its subscribers
are notified, or polling stops.
"""

from datetime import timezone

import structlog

from result_service.config import Settings, get_settings
from result_service.errors import (
    DataIntegrityError,
    ResultServiceError,
    UpstreamError,
    wrap,
)
from result_service.models.domain import (
    ExternalMatchStatus,
    Match,
    ResultStatus,
    SubscriptionStatus,
)
from result_service.repositories import (
    CheckResultTaskRepository,
    ExternalMatchRepository,
    MatchRepository,
    SubscriptionRepository,
)
from result_service.services.fotmob_client import (
    ExternalAPIMatch,
    FotmobClient,
    find_match_by_id,
)
from result_service.services.task_scheduler import TaskAlreadyExistsError, TaskScheduler

logger = structlog.get_logger(__name__)


class ResultCheckerService:
    def __init__(
        self,
        match_repository: MatchRepository,
        external_match_repository: ExternalMatchRepository,
        check_result_task_repository: CheckResultTaskRepository,
        subscription_repository: SubscriptionRepository,
        fotmob_client: FotmobClient,
        task_scheduler: TaskScheduler,
        settings: Settings | None = None,
    ):
        self.match_repository = match_repository
        self.external_match_repository = external_match_repository
        self.check_result_task_repository = check_result_task_repository
        self.subscription_repository = subscription_repository
        self.fotmob_client = fotmob_client
        self.task_scheduler = task_scheduler
        self.settings = settings or get_settings()

    async def _set_status(self, match_id: int, status: ResultStatus) -> None:
        """Best-effort status update while another error is being handled."""
        try:
            await self.match_repository.update_status(match_id, status)
        except Exception as e:
            logger.error(
                "match_status_update_failed",
                match_id=match_id,
                result_status=status.value,
                error=str(e),
            )

    async def check_result(self, match_id: int) -> None:
        """
        Poll the provider for the result of a scheduled match.

        Raises:
            NotFoundError: if the match does not exist
            DataIntegrityError: if the match lacks its external match or task
            UpstreamError: if the provider or the scheduler fails
        """
        match = await self.match_repository.one(match_id=match_id)

        if match.result_status != ResultStatus.SCHEDULED:
            logger.info(
                "check_result_skipped",
                match_id=match_id,
                result_status=match.result_status,
            )
            return

        if match.external_match is None:
            raise DataIntegrityError(f"match {match_id} has no external match")

        try:
            leagues = await self.fotmob_client.get_matches_by_date(
                match.starts_at.astimezone(timezone.utc).date()
            )
        except ResultServiceError as e:
            await self._set_status(match_id, ResultStatus.API_ERROR)
            raise wrap(e, "get matches by date") from e

        fixture = find_match_by_id(leagues, match.external_match.id)
        if fixture is None:
            raise UpstreamError(
                f"external match {match.external_match.id} not found in external API"
            )

        await self.external_match_repository.save(
            external_match_id=fixture.id,
            match_id=match.id,
            home_score=fixture.home_score,
            away_score=fixture.away_score,
            status=fixture.status,
        )

        logger.info(
            "check_result_fetched",
            match_id=match_id,
            external_match_id=fixture.id,
            status=fixture.status.value,
        )

        if fixture.status == ExternalMatchStatus.IN_PROGRESS:
            await self._reschedule(match)
        elif fixture.status == ExternalMatchStatus.FINISHED:
            await self._notify_subscribers(match, fixture)
        else:
            await self.match_repository.update_status(match.id, ResultStatus.CANCELLED)
            logger.info("match_cancelled", match_id=match.id, status=fixture.status.value)

    async def _reschedule(self, match: Match) -> None:
        task = match.check_result_task
        if task is None:
            raise DataIntegrityError(f"match {match.id} has no check result task")

        next_attempt = task.attempt_number + 1
        execute_at = (
            match.starts_at
            + self.settings.first_attempt_delay
            + self.settings.check_interval * task.attempt_number
        )

        try:
            scheduled = await self.task_scheduler.schedule_result_check(
                match.id, next_attempt, execute_at
            )
        except TaskAlreadyExistsError:
            logger.info(
                "check_result_task_already_exists",
                match_id=match.id,
                attempt_number=next_attempt,
            )
            try:
                scheduled = await self.task_scheduler.get_result_check_task(
                    match.id, next_attempt
                )
            except ResultServiceError as e:
                await self._set_status(match.id, ResultStatus.SCHEDULING_ERROR)
                raise wrap(e, "get check result task") from e
        except ResultServiceError as e:
            await self._set_status(match.id, ResultStatus.SCHEDULING_ERROR)
            raise wrap(e, "schedule check result task") from e

        await self.check_result_task_repository.save(
            match_id=match.id,
            name=scheduled.name,
            attempt_number=next_attempt,
            execute_at=scheduled.execute_at,
        )

        logger.info(
            "check_result_rescheduled",
            match_id=match.id,
            attempt_number=next_attempt,
            execute_at=scheduled.execute_at.isoformat(),
        )

    async def _notify_subscribers(self, match: Match, fixture: ExternalAPIMatch) -> None:
        subscriptions = await self.subscription_repository.list_by_match(
            match.id, status=SubscriptionStatus.PENDING
        )

        if not subscriptions:
            logger.warning("finished_match_without_subscriptions", match_id=match.id)

        for subscription in subscriptions:
            try:
                await self.task_scheduler.schedule_subscriber_notification(subscription.id)
            except TaskAlreadyExistsError:
                logger.info(
                    "notify_subscriber_task_already_exists",
                    match_id=match.id,
                    subscription_id=subscription.id,
                )
            except ResultServiceError as e:
                try:
                    await self.subscription_repository.update(
                        subscription.id,
                        SubscriptionStatus.SCHEDULING_ERROR,
                        subscriber_error=str(e),
                    )
                except Exception as update_error:
                    logger.error(
                        "subscription_status_update_failed",
                        subscription_id=subscription.id,
                        error=str(update_error),
                    )
                raise wrap(e, f"schedule notification of subscription {subscription.id}") from e

        await self.match_repository.update_status(match.id, ResultStatus.RECEIVED)

        logger.info(
            "match_result_received",
            match_id=match.id,
            home_score=fixture.home_score,
            away_score=fixture.away_score,
            subscriptions=len(subscriptions),
        )

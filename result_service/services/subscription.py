"""Subscription lifecycle."""

from datetime import datetime

import structlog

from result_service.errors import (
    AlreadyExistsError,
    ResultServiceError,
    UnprocessableContentError,
    wrap,
)
from result_service.models.domain import Match, ResultStatus, SubscriptionStatus
from result_service.repositories import (
    AliasRepository,
    MatchRepository,
    SubscriptionRepository,
)
from result_service.services.task_scheduler import TaskScheduler

logger = structlog.get_logger(__name__)


class SubscriptionService:
    def __init__(
        self,
        alias_repository: AliasRepository,
        match_repository: MatchRepository,
        subscription_repository: SubscriptionRepository,
        task_scheduler: TaskScheduler,
    ):
        self.alias_repository = alias_repository
        self.match_repository = match_repository
        self.subscription_repository = subscription_repository
        self.task_scheduler = task_scheduler

    async def create(self, match_id: int, url: str, secret_key: str) -> None:
        """
        Subscribe a webhook to the result of a scheduled match.

        Registering the same (url, key) twice succeeds.

        Raises:
            NotFoundError: if the match does not exist
            UnprocessableContentError: if the match is not scheduled
        """
        match = await self.match_repository.one(match_id=match_id)

        if match.result_status != ResultStatus.SCHEDULED:
            raise UnprocessableContentError(
                f"unexpected match result status: {match.result_status}"
            )

        try:
            subscription = await self.subscription_repository.create(
                match_id=match.id, url=url, key=secret_key
            )
        except AlreadyExistsError:
            logger.info("subscription_already_exists", match_id=match.id)
            return

        logger.info(
            "subscription_created",
            match_id=match.id,
            subscription_id=subscription.id,
        )

    async def delete(
        self,
        starts_at: datetime,
        alias_home: str,
        alias_away: str,
        base_url: str,
        secret_key: str,
    ) -> None:
        """
        Remove a subscription that has not been notified yet.

        When it was the last subscription of its match, the match and its
        scheduled result check are removed too, best-effort.

        Raises:
            NotFoundError: if an alias, the match or the subscription is unknown
            UnprocessableContentError: if the subscriber was already notified
        """
        try:
            home = await self.alias_repository.find(alias_home)
        except ResultServiceError as e:
            raise wrap(e, "home") from e

        try:
            away = await self.alias_repository.find(alias_away)
        except ResultServiceError as e:
            raise wrap(e, "away") from e

        match = await self.match_repository.one(
            home_team_id=home.team_id,
            away_team_id=away.team_id,
            starts_at=starts_at,
        )

        subscription = await self.subscription_repository.one(
            match_id=match.id, key=secret_key, base_url=base_url
        )

        if subscription.status == SubscriptionStatus.SUCCESSFUL:
            raise UnprocessableContentError(
                f"unexpected subscription status: {subscription.status}"
            )

        await self.subscription_repository.delete(subscription.id)
        logger.info(
            "subscription_deleted",
            match_id=match.id,
            subscription_id=subscription.id,
        )

        await self._cleanup_match(match)

    async def _cleanup_match(self, match: Match) -> None:
        """Delete a match left without subscriptions. Failures are only logged."""
        try:
            remaining = await self.subscription_repository.list_by_match(match.id)
        except Exception as e:
            logger.error("subscriptions_list_failed", match_id=match.id, error=str(e))
            return

        if remaining:
            return

        try:
            await self.match_repository.delete(match.id)
        except Exception as e:
            logger.error("match_delete_failed", match_id=match.id, error=str(e))
            return

        if match.check_result_task is None:
            logger.info("match_deleted", match_id=match.id)
            return

        try:
            await self.task_scheduler.delete_task(match.check_result_task.name)
        except Exception as e:
            logger.error(
                "check_result_task_delete_failed",
                match_id=match.id,
                task_name=match.check_result_task.name,
                error=str(e),
            )
            return

        logger.info(
            "match_deleted",
            match_id=match.id,
            task_name=match.check_result_task.name,
        )

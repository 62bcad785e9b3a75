"""Delivery of the final score to one subscriber."""

from datetime import datetime, timezone

import structlog

from result_service.errors import DataIntegrityError, ResultServiceError, wrap
from result_service.models.domain import SubscriptionStatus
from result_service.repositories import MatchRepository, SubscriptionRepository
from result_service.services.notifier import NotifierClient, SubscriberNotification

logger = structlog.get_logger(__name__)


class SubscriberNotifierService:
    def __init__(
        self,
        subscription_repository: SubscriptionRepository,
        match_repository: MatchRepository,
        notifier_client: NotifierClient,
    ):
        self.subscription_repository = subscription_repository
        self.match_repository = match_repository
        self.notifier_client = notifier_client

    async def notify_subscriber(self, subscription_id: int) -> None:
        """
        Call the subscriber's webhook with the external match score.

        A subscription that was already notified is left alone. A failed
        delivery is recorded on the subscription and raised; it is not retried
        here.

        Raises:
            NotFoundError: if the subscription or its match does not exist
            DataIntegrityError: if the match has no external match
            NotifierError: if the webhook call fails
        """
        subscription = await self.subscription_repository.get(subscription_id)

        if subscription.status == SubscriptionStatus.SUCCESSFUL:
            logger.info("subscriber_already_notified", subscription_id=subscription_id)
            return

        match = await self.match_repository.one(match_id=subscription.match_id)
        if match.external_match is None:
            raise DataIntegrityError(f"match {match.id} has no external match")

        notification = SubscriberNotification(
            url=subscription.url,
            key=subscription.key,
            home=match.external_match.home_score,
            away=match.external_match.away_score,
        )

        try:
            await self.notifier_client.notify(notification)
        except ResultServiceError as e:
            try:
                await self.subscription_repository.update(
                    subscription_id,
                    SubscriptionStatus.SUBSCRIBER_ERROR,
                    subscriber_error=str(e),
                )
            except Exception as update_error:
                logger.error(
                    "subscription_status_update_failed",
                    subscription_id=subscription_id,
                    error=str(update_error),
                )
            raise wrap(e, "notify subscriber") from e

        await self.subscription_repository.update(
            subscription_id,
            SubscriptionStatus.SUCCESSFUL,
            notified_at=datetime.now(timezone.utc),
        )

        logger.info(
            "subscriber_notified",
            subscription_id=subscription_id,
            match_id=match.id,
        )

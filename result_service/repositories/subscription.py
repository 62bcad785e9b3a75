"""Subscription persistence."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from result_service.errors import AlreadyExistsError, NotFoundError
from result_service.models.domain import Subscription, SubscriptionStatus


class SubscriptionRepository:
    """Reads and writes of webhook subscriptions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, match_id: int, url: str, key: str) -> Subscription:
        """
        Register a pending subscription.

        Raises:
            AlreadyExistsError: if the (url, key) pair is already registered
        """
        subscription = Subscription(
            match_id=match_id,
            url=url,
            key=key,
            status=SubscriptionStatus.PENDING.value,
        )
        self.session.add(subscription)

        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise AlreadyExistsError(f"subscription already exists: {e.orig}") from e

        return subscription

    async def get(self, subscription_id: int) -> Subscription:
        """
        Raises:
            NotFoundError: if there is no subscription with this id
        """
        result = await self.session.execute(
            select(Subscription)
            .where(Subscription.id == subscription_id)
            .execution_options(populate_existing=True)
        )
        subscription = result.scalar_one_or_none()

        if subscription is None:
            raise NotFoundError(f"subscription with id {subscription_id} not found")

        return subscription

    async def one(self, match_id: int, key: str, base_url: str) -> Subscription:
        """
        Find the subscription of a match by secret key and URL prefix.

        Raises:
            NotFoundError: if nothing matches
        """
        query = (
            select(Subscription)
            .where(
                Subscription.match_id == match_id,
                Subscription.key == key,
                Subscription.url.startswith(base_url, autoescape=True),
            )
            .order_by(Subscription.id)
            .limit(1)
        )
        result = await self.session.execute(query)
        subscription = result.scalar_one_or_none()

        if subscription is None:
            raise NotFoundError("subscription is not found")

        return subscription

    async def list_by_match(
        self, match_id: int, status: SubscriptionStatus | None = None
    ) -> list[Subscription]:
        """Subscriptions of a match, optionally filtered by status."""
        query = select(Subscription).where(Subscription.match_id == match_id)
        if status is not None:
            query = query.where(Subscription.status == status.value)

        result = await self.session.execute(query.order_by(Subscription.id))
        return list(result.scalars().all())

    async def update(
        self,
        subscription_id: int,
        status: SubscriptionStatus,
        subscriber_error: str | None = None,
        notified_at: datetime | None = None,
    ) -> None:
        """Overwrite status, error text and notification time."""
        await self.session.execute(
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .values(
                status=status.value,
                subscriber_error=subscriber_error,
                notified_at=notified_at,
            )
        )
        await self.session.commit()

    async def delete(self, subscription_id: int) -> None:
        """
        Raises:
            NotFoundError: if the subscription does not exist
        """
        result = await self.session.execute(
            delete(Subscription).where(Subscription.id == subscription_id)
        )
        await self.session.commit()

        if result.rowcount == 0:
            raise NotFoundError(f"subscription {subscription_id} doesn't exist")

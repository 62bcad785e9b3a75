"""Webhook client delivering final scores to subscribers."""

from dataclasses import dataclass

import httpx
import structlog

from result_service.config import Settings, get_settings
from result_service.errors import UpstreamError

logger = structlog.get_logger(__name__)


class NotifierError(UpstreamError):
    """The subscriber webhook could not be delivered."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class SubscriberNotification:
    """One webhook callback: where to send it and what score to report."""

    url: str
    key: str
    home: int
    away: int


class NotifierClient:
    """Sends ``PATCH <url>`` with the subscriber's key and the final score."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "NotifierClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.settings.http_timeout_seconds
            )
            self._owns_client = True
        return self._http_client

    async def notify(self, notification: SubscriberNotification) -> None:
        """
        Deliver the score.

        Raises:
            NotifierError: on transport errors or a non-2xx response
        """
        client = await self._get_client()

        try:
            response = await client.patch(
                notification.url,
                json={"home": notification.home, "away": notification.away},
                headers={"Authorization": notification.key},
            )
        except httpx.HTTPError as e:
            raise NotifierError(f"request to subscriber failed: {e}") from e

        if not response.is_success:
            raise NotifierError(
                f"subscriber responded with status code {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(
            "subscriber_notified",
            url=notification.url,
            status_code=response.status_code,
        )

"""FotMob fixtures API client.

Provides async access to the public "matches by date" endpoint, which lists
every fixture of a calendar day grouped by league.
"""

from datetime import date
from typing import Any

import httpx
import structlog

from result_service.config import Settings, get_settings
from result_service.errors import UpstreamError
from result_service.services.fotmob_client.models import (
    ExternalAPILeague,
    parse_matches_response,
)

logger = structlog.get_logger(__name__)

MATCHES_PATH = "/api/data/matches"


class FotmobAPIError(UpstreamError):
    """FotMob request failed or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FotmobClient:
    """
    FotMob API client.

    Use as an async context manager, or pass an existing ``httpx.AsyncClient``
    which the caller keeps ownership of.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings()
        self._http_client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self) -> "FotmobClient":
        await self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.settings.fotmob_api_base_url,
                timeout=self.settings.http_timeout_seconds,
            )
            self._owns_client = True
        return self._http_client

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        """
        Make a GET request and decode the JSON body.

        Raises:
            FotmobAPIError: on transport errors, non-200 responses or invalid JSON
        """
        client = await self._get_client()

        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning("fotmob_request_failed", path=path, error=str(e))
            raise FotmobAPIError(f"request to {path} failed: {e}") from e

        if response.status_code != httpx.codes.OK:
            logger.warning(
                "fotmob_unexpected_status",
                path=path,
                status_code=response.status_code,
                response_text=response.text[:500] if response.text else "",
            )
            raise FotmobAPIError(
                f"unexpected status code {response.status_code} from {path}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FotmobAPIError(f"invalid JSON from {path}: {e}") from e

    async def get_matches_by_date(self, day: date) -> list[ExternalAPILeague]:
        """
        List the fixtures of a calendar day, grouped by league.

        Args:
            day: Calendar day in the configured provider timezone

        Raises:
            FotmobAPIError: if the request fails or the body cannot be mapped
        """
        data = await self._get(
            MATCHES_PATH,
            {
                "date": day.strftime("%Y%m%d"),
                "timezone": self.settings.fotmob_timezone,
            },
        )

        try:
            leagues = parse_matches_response(data)
        except (KeyError, TypeError, ValueError) as e:
            raise FotmobAPIError(f"unable to map matches of {day.isoformat()}: {e}") from e

        logger.debug(
            "fotmob_matches_fetched",
            date=day.isoformat(),
            leagues=len(leagues),
        )
        return leagues

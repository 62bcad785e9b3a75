"""Alias backfill.

Pulls the provider's fixtures for a list of dates, keeps fixtures of the
included leagues and registers every team name not known yet as a new team
with one alias and its external team.
"""

import asyncio
from datetime import date
from typing import Any

import structlog

from result_service.errors import NotFoundError
from result_service.repositories import AliasRepository
from result_service.services.fotmob_client import (
    ExternalAPILeague,
    ExternalAPIMatch,
    ExternalAPITeam,
    FotmobClient,
)

logger = structlog.get_logger(__name__)

NUMBER_OF_WORKERS = 3


def is_included_league(league: ExternalAPILeague, included_leagues: list[dict[str, Any]]) -> bool:
    """True if the league's name or parent league name and country code are listed."""
    for included in included_leagues:
        if included.get("country_code") != league.country_code:
            continue
        if included.get("name") in (league.name, league.parent_league_name):
            return True
    return False


class BackfillAliasesService:
    def __init__(
        self,
        alias_repository: AliasRepository,
        fotmob_client: FotmobClient,
        included_leagues: list[dict[str, Any]],
        number_of_workers: int = NUMBER_OF_WORKERS,
    ):
        self.alias_repository = alias_repository
        self.fotmob_client = fotmob_client
        self.included_leagues = included_leagues
        self.number_of_workers = number_of_workers

    async def backfill(self, dates: list[date]) -> dict[str, int]:
        """
        Register unseen team names from the fixtures of ``dates``.

        Dates whose fixtures cannot be fetched and teams that cannot be saved
        are logged and skipped.

        Returns:
            Counts of dates, kept matches, saved and existing aliases, errors
        """
        logger.info("aliases_backfill_started", dates=[d.isoformat() for d in dates])

        stats = {"dates": len(dates), "matches": 0, "saved": 0, "existed": 0, "errors": 0}

        matches = await self._get_matches(dates, stats)
        stats["matches"] = len(matches)

        await self._save_teams(self._extract_teams(matches), stats)

        logger.info("aliases_backfill_finished", **stats)
        return stats

    async def _get_matches(self, dates: list[date], stats: dict[str, int]) -> list[ExternalAPIMatch]:
        semaphore = asyncio.Semaphore(self.number_of_workers)

        async def fetch(day: date) -> list[ExternalAPIMatch] | None:
            async with semaphore:
                try:
                    leagues = await self.fotmob_client.get_matches_by_date(day)
                except Exception as e:
                    logger.error("backfill_get_matches_failed", date=day.isoformat(), error=str(e))
                    return None

            kept = [
                match
                for league in leagues
                if is_included_league(league, self.included_leagues)
                for match in league.matches
            ]
            logger.debug("backfill_matches_found", date=day.isoformat(), matches=len(kept))
            return kept

        results = await asyncio.gather(*(fetch(day) for day in dates))

        matches = []
        for result in results:
            if result is None:
                stats["errors"] += 1
                continue
            matches.extend(result)

        return matches

    def _extract_teams(self, matches: list[ExternalAPIMatch]) -> list[ExternalAPITeam]:
        teams = []
        for match in matches:
            teams.append(match.home)
            teams.append(match.away)
        return teams

    async def _save_teams(self, teams: list[ExternalAPITeam], stats: dict[str, int]) -> None:
        for team in teams:
            try:
                await self.alias_repository.find(team.name)
            except NotFoundError:
                pass
            else:
                logger.debug("alias_already_exists", alias=team.name, external_id=team.id)
                stats["existed"] += 1
                continue

            try:
                await self.alias_repository.save_with_team(team.name, team.id)
            except Exception as e:
                logger.error(
                    "alias_save_failed",
                    alias=team.name,
                    external_id=team.id,
                    error=str(e),
                )
                stats["errors"] += 1
                continue

            stats["saved"] += 1

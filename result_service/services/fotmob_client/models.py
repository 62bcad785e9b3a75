"""FotMob response mapping.

FotMob groups fixtures of a day by league. Each fixture carries a numeric
``statusId`` which is mapped to the provider-neutral ExternalMatchStatus.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from result_service.models.domain import ExternalMatchStatus

logger = structlog.get_logger(__name__)

NOT_STARTED = 1
LIVE_1ST_HALF = 2
LIVE_2ND_HALF = 3
POSTPONED = 5
FULL_TIME = 6
LIVE_EXTRA_TIME_1ST_HALF = 8
LIVE_EXTRA_TIME_2ND_HALF = 9
HALF_TIME = 10
AFTER_EXTRA_TIME = 11
INTERRUPTED_SHORT = 12
AFTER_PENALTIES = 13
WAITING_FOR_EXTRA_TIME = 14
ABANDONED = 17
PAUSE_EXTRA_TIME = 231

# 106 is not documented; seen on called-off fixtures
CANCELLED_STATUSES = {POSTPONED, ABANDONED, 106}
# 4 and 20 are not documented; seen on fixtures going to penalties without extra time
IN_PROGRESS_STATUSES = {
    LIVE_1ST_HALF,
    LIVE_2ND_HALF,
    4,
    LIVE_EXTRA_TIME_1ST_HALF,
    LIVE_EXTRA_TIME_2ND_HALF,
    HALF_TIME,
    INTERRUPTED_SHORT,
    WAITING_FOR_EXTRA_TIME,
    20,
    PAUSE_EXTRA_TIME,
}
FINISHED_STATUSES = {FULL_TIME, AFTER_EXTRA_TIME, AFTER_PENALTIES}


@dataclass
class ExternalAPITeam:
    """Team as listed in a fixture."""

    id: int
    name: str
    score: int = 0


@dataclass
class ExternalAPIMatch:
    """One provider fixture."""

    id: int
    home: ExternalAPITeam
    away: ExternalAPITeam
    time: datetime
    status: ExternalMatchStatus

    @property
    def home_score(self) -> int:
        return self.home.score

    @property
    def away_score(self) -> int:
        return self.away.score


@dataclass
class ExternalAPILeague:
    """League with its fixtures for one day."""

    name: str
    country_code: str
    parent_league_name: str = ""
    matches: list[ExternalAPIMatch] = field(default_factory=list)


def to_external_match_status(match_id: int, status_id: int) -> ExternalMatchStatus:
    """Map a FotMob statusId to an ExternalMatchStatus."""
    if status_id == NOT_STARTED:
        return ExternalMatchStatus.NOT_STARTED
    if status_id in CANCELLED_STATUSES:
        return ExternalMatchStatus.CANCELLED
    if status_id in IN_PROGRESS_STATUSES:
        return ExternalMatchStatus.IN_PROGRESS
    if status_id in FINISHED_STATUSES:
        return ExternalMatchStatus.FINISHED

    logger.warning("unknown_fixture_status", match_id=match_id, status_id=status_id)
    return ExternalMatchStatus.UNKNOWN


def parse_utc_time(value: str) -> datetime:
    """Parse FotMob's ``utcTime`` (ISO-8601, usually with a trailing Z)."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _parse_team(data: dict[str, Any]) -> ExternalAPITeam:
    return ExternalAPITeam(
        id=int(data["id"]),
        name=data.get("name", ""),
        score=int(data.get("score") or 0),
    )


def parse_matches_response(data: dict[str, Any]) -> list[ExternalAPILeague]:
    """
    Map the ``/api/data/matches`` response body to leagues.

    Raises:
        ValueError: if a fixture has an unparsable start time
    """
    leagues = []
    for league_data in data.get("leagues") or []:
        matches = []
        for match_data in league_data.get("matches") or []:
            match_id = int(match_data["id"])
            utc_time = (match_data.get("status") or {}).get("utcTime", "")

            try:
                starts_at = parse_utc_time(utc_time)
            except ValueError as e:
                raise ValueError(
                    f"unable to parse match starting time {utc_time!r}: {e}"
                ) from e

            matches.append(
                ExternalAPIMatch(
                    id=match_id,
                    home=_parse_team(match_data["home"]),
                    away=_parse_team(match_data["away"]),
                    time=starts_at,
                    status=to_external_match_status(
                        match_id, int(match_data.get("statusId", 0))
                    ),
                )
            )

        leagues.append(
            ExternalAPILeague(
                name=league_data.get("name", ""),
                country_code=league_data.get("ccode", ""),
                parent_league_name=league_data.get("parentLeagueName") or "",
                matches=matches,
            )
        )

    return leagues


def find_match_by_teams(
    leagues: list[ExternalAPILeague], home_team_id: int, away_team_id: int
) -> ExternalAPIMatch | None:
    """First fixture between these provider teams, home and away as given."""
    for league in leagues:
        for match in league.matches:
            if match.home.id == home_team_id and match.away.id == away_team_id:
                return match
    return None


def find_match_by_id(
    leagues: list[ExternalAPILeague], external_match_id: int
) -> ExternalAPIMatch | None:
    for league in leagues:
        for match in league.matches:
            if match.id == external_match_id:
                return match
    return None

"""Match creation: register a fixture for result tracking.

Create is idempotent per (home team, away team, UTC day). Until the last step
the match stays ``not_scheduled``, so a failed call can simply be repeated.
"""

from datetime import datetime, timezone

import structlog

from result_service.config import Settings, get_settings
from result_service.errors import (
    NotFoundError,
    ResultServiceError,
    UnprocessableContentError,
    wrap,
)
from result_service.models.domain import ExternalMatchStatus, ResultStatus
from result_service.repositories import (
    CheckResultTaskRepository,
    ExternalMatchRepository,
    MatchRepository,
)
from result_service.services.alias import AliasService
from result_service.services.fotmob_client import FotmobClient, find_match_by_teams
from result_service.services.task_scheduler import TaskAlreadyExistsError, TaskScheduler

logger = structlog.get_logger(__name__)

FIRST_ATTEMPT = 1
SCHEDULABLE_STATUSES = (ExternalMatchStatus.NOT_STARTED, ExternalMatchStatus.IN_PROGRESS)


class MatchService:
    def __init__(
        self,
        alias_service: AliasService,
        match_repository: MatchRepository,
        external_match_repository: ExternalMatchRepository,
        check_result_task_repository: CheckResultTaskRepository,
        fotmob_client: FotmobClient,
        task_scheduler: TaskScheduler,
        settings: Settings | None = None,
    ):
        self.alias_service = alias_service
        self.match_repository = match_repository
        self.external_match_repository = external_match_repository
        self.check_result_task_repository = check_result_task_repository
        self.fotmob_client = fotmob_client
        self.task_scheduler = task_scheduler
        self.settings = settings or get_settings()

    async def create(self, starts_at: datetime, alias_home: str, alias_away: str) -> int:
        """
        Register a fixture and schedule its first result check.

        Args:
            starts_at: Kick-off time; naive values are taken as UTC
            alias_home: Alias of the home team
            alias_away: Alias of the away team

        Returns:
            Id of the (possibly pre-existing) match

        Raises:
            UnprocessableContentError: if the match is in the past, already
                tracked in another state, or not schedulable at the provider
            NotFoundError: if an alias is unknown
            MissingExternalLinkError: if an alias has no external team
            UpstreamError: if the provider or the scheduler fails
        """
        if starts_at.tzinfo is None:
            starts_at = starts_at.replace(tzinfo=timezone.utc)

        if starts_at <= datetime.now(timezone.utc):
            raise UnprocessableContentError("match starting time must be in the future")

        try:
            home = await self.alias_service.find(alias_home)
        except ResultServiceError as e:
            raise wrap(e, "home") from e

        try:
            away = await self.alias_service.find(alias_away)
        except ResultServiceError as e:
            raise wrap(e, "away") from e

        match_id = None
        try:
            match = await self.match_repository.one(
                home_team_id=home.team_id,
                away_team_id=away.team_id,
                starts_at=starts_at,
            )
        except NotFoundError:
            match = None

        if match is not None:
            if match.result_status == ResultStatus.SCHEDULED:
                logger.info("match_already_scheduled", match_id=match.id)
                return match.id
            if match.result_status != ResultStatus.NOT_SCHEDULED:
                raise UnprocessableContentError(
                    f"match already exists with result status: {match.result_status}"
                )
            match_id = match.id

        try:
            leagues = await self.fotmob_client.get_matches_by_date(
                starts_at.astimezone(timezone.utc).date()
            )
        except ResultServiceError as e:
            raise wrap(e, "get matches by date") from e

        fixture = find_match_by_teams(leagues, home.external_team_id, away.external_team_id)
        if fixture is None:
            raise UnprocessableContentError("match not found in external API")

        if fixture.status not in SCHEDULABLE_STATUSES:
            raise UnprocessableContentError(
                f"match has unexpected status in external API: {fixture.status.value}"
            )

        match_id = await self.match_repository.save(
            match_id=match_id,
            home_team_id=home.team_id,
            away_team_id=away.team_id,
            starts_at=fixture.time,
            result_status=ResultStatus.NOT_SCHEDULED,
        )

        await self.external_match_repository.save(
            external_match_id=fixture.id,
            match_id=match_id,
            home_score=fixture.home_score,
            away_score=fixture.away_score,
            status=fixture.status,
        )

        schedule_at = fixture.time + self.settings.first_attempt_delay
        try:
            task = await self.task_scheduler.schedule_result_check(
                match_id, FIRST_ATTEMPT, schedule_at
            )
        except TaskAlreadyExistsError:
            logger.info("check_result_task_already_exists", match_id=match_id)
            task = await self.task_scheduler.get_result_check_task(match_id, FIRST_ATTEMPT)
        except ResultServiceError as e:
            raise wrap(e, "schedule check result task") from e

        await self.check_result_task_repository.save(
            match_id=match_id,
            name=task.name,
            attempt_number=FIRST_ATTEMPT,
            execute_at=task.execute_at,
        )

        await self.match_repository.update_status(match_id, ResultStatus.SCHEDULED)

        logger.info(
            "match_scheduled",
            match_id=match_id,
            external_match_id=fixture.id,
            execute_at=task.execute_at.isoformat(),
        )
        return match_id

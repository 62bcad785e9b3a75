"""Match persistence."""

from datetime import datetime, time, timedelta, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from result_service.errors import NotFoundError
from result_service.models.domain import Match, ResultStatus
from result_service.repositories.base import upsert_statement


def utc_day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the UTC calendar day of ``moment``."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    day_start = datetime.combine(moment.date(), time.min, tzinfo=timezone.utc)
    return day_start, day_start + timedelta(days=1)


class MatchRepository:
    """Reads and writes of Match rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def one(
        self,
        match_id: int | None = None,
        home_team_id: int | None = None,
        away_team_id: int | None = None,
        starts_at: datetime | None = None,
    ) -> Match:
        """
        Find one match by any combination of id, teams and UTC day of kick-off.

        The external match and check-result task are loaded with it.

        Raises:
            NotFoundError: if no match fits the filters
        """
        query = select(Match).options(
            selectinload(Match.external_match),
            selectinload(Match.check_result_task),
        )

        if match_id is not None:
            query = query.where(Match.id == match_id)
        if home_team_id is not None:
            query = query.where(Match.home_team_id == home_team_id)
        if away_team_id is not None:
            query = query.where(Match.away_team_id == away_team_id)
        if starts_at is not None:
            day_start, day_end = utc_day_bounds(starts_at)
            query = query.where(Match.starts_at >= day_start, Match.starts_at < day_end)

        result = await self.session.execute(
            query.order_by(Match.id).limit(1).execution_options(populate_existing=True)
        )
        match = result.scalar_one_or_none()

        if match is None:
            raise NotFoundError("match not found")

        return match

    async def save(
        self,
        match_id: int | None,
        home_team_id: int,
        away_team_id: int,
        starts_at: datetime,
        result_status: ResultStatus,
    ) -> int:
        """Insert a match, or overwrite the row with ``match_id``. Returns the id."""
        values = {
            "home_team_id": home_team_id,
            "away_team_id": away_team_id,
            "starts_at": starts_at,
            "result_status": result_status.value,
        }
        if match_id is not None:
            values["id"] = match_id

        stmt = upsert_statement(self.session, Match).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "home_team_id": home_team_id,
                "away_team_id": away_team_id,
                "starts_at": starts_at,
                "result_status": result_status.value,
            },
        ).returning(Match.id)

        result = await self.session.execute(stmt)
        saved_id = result.scalar_one()
        await self.session.commit()

        return saved_id

    async def update_status(self, match_id: int, result_status: ResultStatus) -> None:
        """Set the result status of a match."""
        await self.session.execute(
            update(Match)
            .where(Match.id == match_id)
            .values(result_status=result_status.value)
        )
        await self.session.commit()

    async def delete(self, match_id: int) -> None:
        """
        Delete a match. Its external match, task row and subscriptions cascade.

        Raises:
            NotFoundError: if the match does not exist
        """
        result = await self.session.execute(delete(Match).where(Match.id == match_id))
        await self.session.commit()

        if result.rowcount == 0:
            raise NotFoundError(f"match {match_id} doesn't exist")

"""External match snapshot persistence."""

from sqlalchemy.ext.asyncio import AsyncSession

from result_service.models.domain import ExternalMatch, ExternalMatchStatus
from result_service.repositories.base import upsert_statement


class ExternalMatchRepository:
    """Upserts of provider snapshots keyed by provider match id."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(
        self,
        external_match_id: int,
        match_id: int,
        home_score: int,
        away_score: int,
        status: ExternalMatchStatus,
    ) -> None:
        stmt = upsert_statement(self.session, ExternalMatch).values(
            id=external_match_id,
            match_id=match_id,
            home_score=home_score,
            away_score=away_score,
            status=status.value,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "match_id": match_id,
                "home_score": home_score,
                "away_score": away_score,
                "status": status.value,
            },
        )
        await self.session.execute(stmt)
        await self.session.commit()

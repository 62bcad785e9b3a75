"""Check-result task bookkeeping."""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from result_service.models.domain import CheckResultTask
from result_service.repositories.base import upsert_statement


class CheckResultTaskRepository:
    """One row per match: a new attempt overwrites the previous one."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(
        self,
        match_id: int,
        name: str,
        attempt_number: int,
        execute_at: datetime,
    ) -> None:
        stmt = upsert_statement(self.session, CheckResultTask).values(
            match_id=match_id,
            name=name,
            attempt_number=attempt_number,
            execute_at=execute_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["match_id"],
            set_={
                "name": name,
                "attempt_number": attempt_number,
                "execute_at": execute_at,
            },
        )
        await self.session.execute(stmt)
        await self.session.commit()

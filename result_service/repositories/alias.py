"""Alias persistence."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from result_service.errors import NotFoundError
from result_service.models.domain import Alias, ExternalTeam, Team


SEARCH_LIMIT = 10


class AliasRepository:
    """Lookup and registration of team aliases."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, alias: str) -> Alias:
        """
        Find an alias by case-insensitive exact name.

        The alias's team and its external team are loaded.

        Raises:
            NotFoundError: if no alias has this name
        """
        query = (
            select(Alias)
            .options(selectinload(Alias.team).selectinload(Team.external_team))
            .where(func.lower(Alias.alias) == alias.lower())
            .order_by(Alias.id)
            .limit(1)
        )
        result = await self.session.execute(query)
        found = result.scalar_one_or_none()

        if found is None:
            raise NotFoundError(f"alias {alias} not found")

        return found

    async def search(self, text: str, limit: int = SEARCH_LIMIT) -> list[Alias]:
        """Aliases whose name contains ``text``, case-insensitive."""
        query = (
            select(Alias)
            .where(Alias.alias.icontains(text, autoescape=True))
            .order_by(Alias.alias)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def save_with_team(self, alias: str, external_team_id: int) -> Alias:
        """Create a team with one alias and its external team in a single transaction."""
        try:
            team = Team()
            self.session.add(team)
            await self.session.flush()

            created = Alias(team_id=team.id, alias=alias)
            self.session.add(created)
            self.session.add(ExternalTeam(id=external_team_id, team_id=team.id))

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        return created

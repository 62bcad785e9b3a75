"""Team alias resolution and search."""

from dataclasses import dataclass

from result_service.errors import MissingExternalLinkError
from result_service.repositories import AliasRepository


@dataclass(frozen=True)
class ResolvedAlias:
    """Internal team id and the provider's team id behind an alias."""

    team_id: int
    external_team_id: int


class AliasService:
    """Resolves human-entered team names for scheduling."""

    def __init__(self, alias_repository: AliasRepository):
        self.alias_repository = alias_repository

    async def find(self, alias: str) -> ResolvedAlias:
        """
        Resolve an alias, case-insensitive.

        Raises:
            NotFoundError: if the alias is unknown
            MissingExternalLinkError: if the alias's team has no external team
        """
        found = await self.alias_repository.find(alias)

        external_team = found.team.external_team if found.team is not None else None
        if external_team is None:
            raise MissingExternalLinkError(f"alias {alias} has no external team")

        return ResolvedAlias(team_id=found.team_id, external_team_id=external_team.id)

    async def search(self, text: str) -> list[str]:
        """Up to ten alias names containing ``text``."""
        aliases = await self.alias_repository.search(text)
        return [a.alias for a in aliases]

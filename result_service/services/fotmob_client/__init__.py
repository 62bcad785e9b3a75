"""FotMob API client module."""

from result_service.services.fotmob_client.api import FotmobAPIError, FotmobClient
from result_service.services.fotmob_client.models import (
    ExternalAPILeague,
    ExternalAPIMatch,
    ExternalAPITeam,
    find_match_by_id,
    find_match_by_teams,
    to_external_match_status,
)

__all__ = [
    "FotmobClient",
    "FotmobAPIError",
    "ExternalAPILeague",
    "ExternalAPIMatch",
    "ExternalAPITeam",
    "find_match_by_id",
    "find_match_by_teams",
    "to_external_match_status",
]

"""Repositories over the async SQLAlchemy session."""

from result_service.repositories.alias import AliasRepository
from result_service.repositories.check_result_task import CheckResultTaskRepository
from result_service.repositories.external_match import ExternalMatchRepository
from result_service.repositories.match import MatchRepository
from result_service.repositories.subscription import SubscriptionRepository

__all__ = [
    "AliasRepository",
    "MatchRepository",
    "ExternalMatchRepository",
    "CheckResultTaskRepository",
    "SubscriptionRepository",
]

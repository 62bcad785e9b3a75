"""Database models for the result service."""

from result_service.models.base import Base, async_session_factory, engine, get_db
from result_service.models.domain import (
    Alias,
    CheckResultTask,
    ExternalMatch,
    ExternalMatchStatus,
    ExternalTeam,
    Match,
    ResultStatus,
    Subscription,
    SubscriptionStatus,
    Team,
)

__all__ = [
    # Base
    "Base",
    "engine",
    "async_session_factory",
    "get_db",
    # Domain models
    "Team",
    "Alias",
    "ExternalTeam",
    "Match",
    "ExternalMatch",
    "CheckResultTask",
    "Subscription",
    # Statuses
    "ResultStatus",
    "ExternalMatchStatus",
    "SubscriptionStatus",
]

"""Domain models for the result service.

A Match is registered for result tracking once its teams are resolved
through aliases to provider (external) team ids. Each Match owns at most
one ExternalMatch snapshot and at most one CheckResultTask row; both are
upserted, never appended, so a match never has two outstanding polls.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from result_service.models.base import Base, CreatedAtMixin


class ResultStatus(str, Enum):
    """Result tracking state of a match."""

    NOT_SCHEDULED = "not_scheduled"
    SCHEDULED = "scheduled"
    SCHEDULING_ERROR = "scheduling_error"
    RECEIVED = "received"
    API_ERROR = "api_error"
    CANCELLED = "cancelled"


class ExternalMatchStatus(str, Enum):
    """Fixture state as reported by the provider."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class SubscriptionStatus(str, Enum):
    """Delivery state of a webhook subscription."""

    PENDING = "pending"
    SCHEDULING_ERROR = "scheduling_error"
    SUCCESSFUL = "successful"
    SUBSCRIBER_ERROR = "subscriber_error"


class Team(Base):
    """Internal team identity. Names live in aliases."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # Relationships
    aliases: Mapped[list["Alias"]] = relationship("Alias", back_populates="team")
    external_team: Mapped[Optional["ExternalTeam"]] = relationship(
        "ExternalTeam", back_populates="team", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Team {self.id}>"


class Alias(Base):
    """Human-entered team name, unique and matched case-insensitively."""

    __tablename__ = "aliases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    alias: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    team: Mapped["Team"] = relationship("Team", back_populates="aliases")

    def __repr__(self) -> str:
        return f"<Alias {self.alias} (team={self.team_id})>"


# "Chelsea" and "chelsea" are the same alias
Index("uq_aliases_alias_lower", func.lower(Alias.alias), unique=True)


class ExternalTeam(Base):
    """Provider team. The primary key is the provider's own team id."""

    __tablename__ = "external_teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    # Relationships
    team: Mapped["Team"] = relationship("Team", back_populates="external_team")

    def __repr__(self) -> str:
        return f"<ExternalTeam {self.id} (team={self.team_id})>"


class Match(Base, CreatedAtMixin):
    """
    A fixture registered for result tracking.

    One match per (home team, away team, UTC day of starts_at). The
    uniqueness is enforced by an expression index in the migration.
    """

    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    home_team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id"), nullable=False
    )
    away_team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id"), nullable=False
    )
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    result_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ResultStatus.NOT_SCHEDULED.value,
        doc="not_scheduled, scheduled, scheduling_error, received, api_error, cancelled",
    )

    # Relationships
    external_match: Mapped[Optional["ExternalMatch"]] = relationship(
        "ExternalMatch",
        back_populates="match",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    check_result_task: Mapped[Optional["CheckResultTask"]] = relationship(
        "CheckResultTask",
        back_populates="match",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    subscriptions: Mapped[list["Subscription"]] = relationship(
        "Subscription",
        back_populates="match",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_matches_teams_starts_at", "home_team_id", "away_team_id", "starts_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Match {self.id} {self.home_team_id} v {self.away_team_id} "
            f"({self.starts_at}, {self.result_status})>"
        )


class ExternalMatch(Base):
    """
    Cached provider snapshot of one fixture.

    The primary key is the provider match id. Refreshed on every poll;
    never used as the source of truth beyond the current poll.
    """

    __tablename__ = "external_matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    match_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("matches.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    home_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    away_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    # Relationships
    match: Mapped["Match"] = relationship("Match", back_populates="external_match")

    def __repr__(self) -> str:
        return f"<ExternalMatch {self.id} {self.home_score}-{self.away_score} ({self.status})>"


class CheckResultTask(Base, CreatedAtMixin):
    """Most recently scheduled result check of a match."""

    __tablename__ = "check_result_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("matches.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(500), unique=True, nullable=False)
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    execute_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Relationships
    match: Mapped["Match"] = relationship("Match", back_populates="check_result_task")

    def __repr__(self) -> str:
        return f"<CheckResultTask {self.name} (attempt={self.attempt_number})>"


class Subscription(Base, CreatedAtMixin):
    """Webhook registration waiting for the final score of one match."""

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubscriptionStatus.PENDING.value,
        doc="pending, scheduling_error, successful, subscriber_error",
    )
    subscriber_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    notified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    match: Mapped["Match"] = relationship("Match", back_populates="subscriptions")

    __table_args__ = (
        UniqueConstraint("url", "key", name="uq_subscriptions_url_key"),
        Index("idx_subscriptions_match_status", "match_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Subscription {self.id} match={self.match_id} ({self.status})>"

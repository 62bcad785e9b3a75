"""Shared helpers for repositories."""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def upsert_statement(session: AsyncSession, model):
    """
    Build an INSERT for ``model`` that supports ``on_conflict_do_update``.

    PostgreSQL in production, SQLite for the in-memory test database.
    Both dialects share the same ``on_conflict_do_update`` signature.
    """
    if session.bind is not None and session.bind.dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)

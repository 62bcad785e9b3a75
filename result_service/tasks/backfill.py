"""Alias backfill task.

Not scheduled periodically; send it on demand with a list of ISO dates, or run
``scripts/backfill_aliases.py``.
"""

import asyncio
from datetime import date
from typing import Any

import structlog

from result_service.config import get_settings
from result_service.models.base import get_task_session
from result_service.repositories import AliasRepository
from result_service.services.backfill_aliases import BackfillAliasesService
from result_service.services.fotmob_client import FotmobClient
from result_service.tasks import celery_app

logger = structlog.get_logger(__name__)


async def run_backfill(dates: list[date]) -> dict[str, Any]:
    """Backfill aliases from the fixtures of ``dates`` with a fresh session."""
    settings = get_settings()

    async with get_task_session() as session:
        async with FotmobClient(settings=settings) as fotmob:
            service = BackfillAliasesService(
                alias_repository=AliasRepository(session),
                fotmob_client=fotmob,
                included_leagues=settings.load_included_leagues(),
            )
            return await service.backfill(dates)


@celery_app.task(name="result_service.tasks.backfill.backfill_aliases_task")
def backfill_aliases_task(dates: list[str]) -> dict[str, Any]:
    """Celery task to backfill aliases for ISO formatted dates."""
    return asyncio.run(run_backfill([date.fromisoformat(d) for d in dates]))

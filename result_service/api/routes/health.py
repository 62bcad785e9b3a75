"""Liveness and readiness probes for the API process."""

from datetime import datetime, timezone

import redis.asyncio as redis
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from result_service.api.dependencies import get_db, get_redis

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class ReadyCheck(BaseModel):
    """Outcome of one dependency check; ``message`` holds the error text."""

    status: str
    message: str | None = None


class ReadyResponse(BaseModel):
    ready: bool
    checks: dict[str, ReadyCheck]


@router.get("/health", response_model=HealthResponse)
async def health():
    """The process is up. No dependency is touched and no API key is needed."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/ready", response_model=ReadyResponse)
async def ready(
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis),
):
    """
    Whether match registration and subscriptions can be served.

    ``db`` covers matches, aliases and subscriptions. ``redis`` is the Celery
    broker and holds the task name claims, so scheduling fails without it.
    A failed check is reported in the body, never raised.
    """
    checks = {}
    all_ready = True

    try:
        await db.execute(text("SELECT 1"))
        checks["db"] = ReadyCheck(status="ok")
    except Exception as e:
        checks["db"] = ReadyCheck(status="error", message=str(e))
        all_ready = False

    try:
        await redis_client.ping()
        checks["redis"] = ReadyCheck(status="ok")
    except Exception as e:
        checks["redis"] = ReadyCheck(status="error", message=str(e))
        all_ready = False

    return ReadyResponse(ready=all_ready, checks=checks)

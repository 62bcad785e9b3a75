"""Match API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from result_service.api.dependencies import get_match_service
from result_service.api.security import verify_api_key
from result_service.services.match import MatchService

router = APIRouter(
    prefix="/v1/matches",
    tags=["matches"],
    dependencies=[Depends(verify_api_key)],
)


class CreateMatchRequest(BaseModel):
    """Fixture to track."""

    starts_at: datetime
    alias_home: str = Field(min_length=1)
    alias_away: str = Field(min_length=1)


class CreateMatchResponse(BaseModel):
    match_id: int


@router.post("", response_model=CreateMatchResponse)
async def create_match(
    request: CreateMatchRequest,
    service: MatchService = Depends(get_match_service),
):
    """
    Register a match for result tracking.

    Repeating the request for a scheduled match returns the same id.
    """
    match_id = await service.create(
        starts_at=request.starts_at,
        alias_home=request.alias_home,
        alias_away=request.alias_away,
    )
    return CreateMatchResponse(match_id=match_id)

"""Alias API endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from result_service.api.dependencies import get_alias_service
from result_service.api.security import verify_api_key
from result_service.services.alias import AliasService

router = APIRouter(
    prefix="/v1/aliases",
    tags=["aliases"],
    dependencies=[Depends(verify_api_key)],
)


class AliasSearchResponse(BaseModel):
    aliases: list[str]


@router.get("", response_model=AliasSearchResponse)
async def search_aliases(
    search: str = Query(..., min_length=3),
    service: AliasService = Depends(get_alias_service),
):
    """Aliases containing the search text, case-insensitive."""
    return AliasSearchResponse(aliases=await service.search(search))

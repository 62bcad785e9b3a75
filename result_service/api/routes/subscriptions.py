"""Subscription API endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from result_service.api.dependencies import get_subscription_service
from result_service.api.security import verify_api_key
from result_service.services.subscription import SubscriptionService

router = APIRouter(
    prefix="/v1/subscriptions",
    tags=["subscriptions"],
    dependencies=[Depends(verify_api_key)],
)


class CreateSubscriptionRequest(BaseModel):
    """Webhook to call with the final score of a match."""

    match_id: int
    url: str = Field(min_length=1, max_length=2048)
    secret_key: str = Field(min_length=1, max_length=255)


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
async def create_subscription(
    request: CreateSubscriptionRequest,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Subscribe to a scheduled match. Re-registering is a no-op."""
    await service.create(
        match_id=request.match_id,
        url=request.url,
        secret_key=request.secret_key,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subscription(
    starts_at: datetime = Query(...),
    alias_home: str = Query(..., min_length=1),
    alias_away: str = Query(..., min_length=1),
    base_url: str = Query(..., min_length=1),
    secret_key: str = Query(..., min_length=1),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """
    Unsubscribe from a match.

    The subscription is found by match (aliases and day), secret key and URL
    prefix. Deleting the last subscription of a match removes the match.
    """
    await service.delete(
        starts_at=starts_at,
        alias_home=alias_home,
        alias_away=alias_away,
        base_url=base_url,
        secret_key=secret_key,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)

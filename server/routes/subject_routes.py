"""Subject subscription and channel directory routes."""

from typing import List

from fastapi import APIRouter, Depends

from server import service_locator
from server.auth import get_current_user
from server.schemas.common import ErrorResponse
from server.schemas.subjects import (
    ChannelResponse,
    SubscribeRequest,
    SubscribeResponse,
    UnsubscribeResponse,
)

router = APIRouter(tags=["Subjects"], responses={401: {"model": ErrorResponse}})


@router.get("/subjects", response_model=List[str])
async def list_subjects(current_user: str = Depends(get_current_user)):
    """Subjects the caller is subscribed to (those with a Main entry)."""
    return service_locator.get_subscription_service().list_subjects(current_user)


@router.post("/subjects", response_model=SubscribeResponse)
async def subscribe(request: SubscribeRequest, current_user: str = Depends(get_current_user)):
    """
    Subscribe the caller to every category of each subject.

    A channel that cannot be joined is skipped; the request still succeeds.

    Raises:
        - 400: Empty or invalid subject list
        - 404: Caller not found
    """
    subscribed = await service_locator.get_subscription_service().subscribe_many(
        current_user, request.subjects
    )
    return SubscribeResponse(success=True, subscribed=subscribed)


@router.delete("/subjects/{subject}", response_model=UnsubscribeResponse)
async def unsubscribe(subject: str, current_user: str = Depends(get_current_user)):
    """
    Leave a subject's channels and delete its subscriptions and uploads.

    Raises:
        - 400: Unknown subject
        - 500: Database failure
    """
    removed = await service_locator.get_subscription_service().unsubscribe(current_user, subject)
    return UnsubscribeResponse(success=True, removed_subscriptions=removed)


@router.get("/channels", response_model=List[ChannelResponse])
async def list_channels(current_user: str = Depends(get_current_user)):
    """Directory records used by clients to resolve (subject, category) to a channel."""
    records = service_locator.get_subscription_service().list_directory(current_user)
    return [record.to_dict() for record in records]

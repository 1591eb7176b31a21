"""Pydantic schemas for subject subscription endpoints."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class SubscribeRequest(BaseModel):
    """Request model for subject subscription. Validated by the service."""
    subjects: Any = None


class SubscribeResponse(BaseModel):
    success: bool
    subscribed: Dict[str, List[str]]


class UnsubscribeResponse(BaseModel):
    success: bool
    removed_subscriptions: int


class SubChannelResponse(BaseModel):
    name: str
    id: int
    inviteLink: Optional[str] = None


class ChannelResponse(BaseModel):
    """Directory record in the JSON form the CLI store persists."""
    subject: str
    mainChannelId: int
    subChannels: List[SubChannelResponse]

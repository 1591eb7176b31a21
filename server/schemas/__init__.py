"""Pydantic schemas for API requests and responses."""

from server.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse
)
from server.schemas.files import (
    FileSummaryResponse,
    UploadResponse,
    FavoriteResponse,
    SharedFileResponse
)
from server.schemas.subjects import (
    SubscribeRequest,
    SubscribeResponse,
    UnsubscribeResponse,
    ChannelResponse
)
from server.schemas.dashboard import DashboardStatsResponse
from server.schemas.common import ErrorResponse

__all__ = [
    "RegisterRequest",
    "RegisterResponse",
    "LoginRequest",
    "LoginResponse",
    "FileSummaryResponse",
    "UploadResponse",
    "FavoriteResponse",
    "SharedFileResponse",
    "SubscribeRequest",
    "SubscribeResponse",
    "UnsubscribeResponse",
    "ChannelResponse",
    "DashboardStatsResponse",
    "ErrorResponse"
]

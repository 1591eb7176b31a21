"""Pydantic schemas for file operation endpoints."""

from typing import Optional
from pydantic import BaseModel


class FileSummaryResponse(BaseModel):
    """Response model for a caller-owned file."""
    id: str
    message_id: int
    name: str
    size: int
    uploaded_at: str
    subject: str
    category: str


class UploadResponse(BaseModel):
    """Response model for file upload."""
    success: bool
    message_id: int
    file_name: str
    file_url: Optional[str] = None


class FavoriteResponse(BaseModel):
    """Response model for the favorite toggle."""
    is_favorite: bool


class SharedFileResponse(BaseModel):
    """Response model for a file of a Public channel."""
    id: str
    name: str
    size: int
    uploaded_at: str
    type: str
    uploaded_by: str
    subject: str

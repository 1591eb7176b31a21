"""Pydantic schemas for the dashboard endpoint."""

from typing import List, Optional
from pydantic import BaseModel


class RecentUploadResponse(BaseModel):
    id: str
    name: str
    uploaded_at: str
    subject: str
    size: int = 0


class SubjectStatResponse(BaseModel):
    subject: str
    file_count: int


class DashboardStatsResponse(BaseModel):
    """Response model for dashboard statistics."""
    total_files: int
    favorite_files: int
    recent_uploads: List[RecentUploadResponse]
    subject_stats: List[SubjectStatResponse]
    last_updated: Optional[str] = None

"""Dashboard statistics route."""

from fastapi import APIRouter, Depends, Query

from server import service_locator
from server.auth import get_current_user
from server.schemas.common import ErrorResponse
from server.schemas.dashboard import DashboardStatsResponse

router = APIRouter(prefix="/dashboard", tags=["Dashboard"], responses={401: {"model": ErrorResponse}})


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_stats(
    refresh: bool = Query(False, description="Bypass the cache"),
    current_user: str = Depends(get_current_user),
):
    """
    File counts, recent uploads and per-subject totals across the caller's
    subscribed channels. Cached per caller for a short TTL.

    Raises:
        - 404: Caller not found
    """
    stats = await service_locator.get_stats_cache().get_stats(current_user, force_refresh=refresh)
    return stats.to_dict()

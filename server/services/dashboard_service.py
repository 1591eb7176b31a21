"""Dashboard statistics computed across a caller's subscribed channels."""

from typing import Dict

from common.logging_config import get_logger
from server import aggregator, config
from server.blobstore.connection import BlobStoreConnectionManager
from server.exceptions import UserNotFoundError
from server.repositories.favorite_repository import FavoriteRepository
from server.repositories.subscription_repository import SubscriptionRepository
from server.repositories.user_repository import UserRepository
from server.types import DashboardStats, SubjectStat
from server.utils import get_current_timestamp

logger = get_logger(__name__)


class DashboardService:
    def __init__(
        self,
        connections: BlobStoreConnectionManager,
        subscription_repo: SubscriptionRepository = None,
        favorite_repo: FavoriteRepository = None,
        user_repo: UserRepository = None,
    ):
        self.connections = connections
        self.subscription_repo = subscription_repo or SubscriptionRepository()
        self.favorite_repo = favorite_repo or FavoriteRepository()
        self.user_repo = user_repo or UserRepository()

    def subscribed_catalog(self, caller_id: str) -> Dict[str, Dict[str, int]]:
        catalog: Dict[str, Dict[str, int]] = {}
        for entry in self.subscription_repo.find_by_user(caller_id):
            catalog.setdefault(entry.subject, {})[entry.category] = entry.location_id
        return catalog

    async def compute_stats(self, caller_id: str) -> DashboardStats:
        """
        Aggregate the caller's subscribed channels into dashboard counters.

        Raises:
            UserNotFoundError: If the caller row is missing
        """
        if self.user_repo.get_by_user_id(caller_id) is None:
            raise UserNotFoundError(f"User not found: {caller_id}")

        catalog = self.subscribed_catalog(caller_id)

        async with self.connections.connection() as store:
            result = await aggregator.aggregate(
                store,
                catalog,
                per_location_limit=config.MESSAGES_LIMIT,
                top_n=config.RECENT_UPLOADS_LIMIT,
            )

        subject_stats = sorted(
            (SubjectStat(subject=subject, file_count=count) for subject, count in result.subject_counts.items()),
            key=lambda stat: stat.file_count,
            reverse=True,
        )

        stats = DashboardStats(
            total_files=result.total_count,
            favorite_files=self.favorite_repo.count_for_user(caller_id),
            recent_uploads=list(result.recent_items),
            subject_stats=subject_stats,
            last_updated=get_current_timestamp(),
        )
        logger.info(f"Computed dashboard stats: {stats.total_files} files [user_id={caller_id}]")
        return stats

"""Subject subscriptions: remote channel membership plus the durable table."""

import sqlite3
from typing import Dict, List, Sequence

from common.constants import MAIN_CATEGORY, PUBLIC_CATEGORY
from common.logging_config import get_logger
from common.types import DirectoryRecord
from server.blobstore.connection import BlobStoreConnectionManager
from server.catalog import SubjectCatalog
from server.database import get_db_connection
from server.exceptions import InvalidInputError, PersistenceError, RemoteTransientError, UserNotFoundError
from server.repositories.ownership_repository import OwnershipRepository
from server.repositories.subscription_repository import SubscriptionEntry, SubscriptionRepository
from server.repositories.user_repository import UserRepository
from server.utils import utc_now

logger = get_logger(__name__)


class SubscriptionService:
    """
    Keeps (caller, subject, category) rows in step with channel membership.

    Remote join/leave calls are best-effort: a failure is logged and the
    batch continues. Database failures are raised as PersistenceError.
    """

    def __init__(
        self,
        connections: BlobStoreConnectionManager,
        catalog: SubjectCatalog,
        subscription_repo: SubscriptionRepository = None,
        ownership_repo: OwnershipRepository = None,
        user_repo: UserRepository = None,
    ):
        self.connections = connections
        self.catalog = catalog
        self.subscription_repo = subscription_repo or SubscriptionRepository()
        self.ownership_repo = ownership_repo or OwnershipRepository()
        self.user_repo = user_repo or UserRepository()

    def _require_subject(self, subject: str) -> None:
        if not subject or not self.catalog.has_subject(subject):
            raise InvalidInputError(f"Invalid subject: {subject}")

    def _require_user(self, caller_id: str) -> None:
        if self.user_repo.get_by_user_id(caller_id) is None:
            raise UserNotFoundError(f"User not found: {caller_id}")

    async def subscribe(self, caller_id: str, subject: str, categories: Sequence[str]) -> List[str]:
        """
        Join each category channel of a subject and record the subscription.

        A category whose join fails is skipped and not recorded. Repeated
        calls for an already subscribed category are no-ops.

        Returns:
            Categories the caller is subscribed to after the call

        Raises:
            InvalidInputError: Unknown subject or category
            PersistenceError: A subscription row could not be written
        """
        self._require_subject(subject)
        locations = {}
        for category in categories:
            location = self.catalog.location(subject, category)
            if location is None:
                raise InvalidInputError(f"Invalid category '{category}' for subject '{subject}'")
            locations[category] = location

        subscribed = []
        async with self.connections.connection() as store:
            for category, location in locations.items():
                try:
                    await store.join_location(location)
                except Exception as e:
                    logger.error(f"Failed to join channel for {subject} {category}: {e}")
                    continue

                entry = SubscriptionEntry(
                    user_id=caller_id,
                    subject=subject,
                    category=category,
                    location_id=location,
                )
                try:
                    inserted = self.subscription_repo.upsert(entry, utc_now())
                except sqlite3.Error as e:
                    logger.error(f"Failed to store subscription {subject}/{category} [user_id={caller_id}]: {e}")
                    raise PersistenceError(f"Failed to store subscription for {subject}") from e

                if inserted:
                    logger.info(f"Subscribed to {subject}/{category} [user_id={caller_id}]")
                subscribed.append(category)

        return subscribed

    async def subscribe_many(self, caller_id: str, subjects) -> Dict[str, List[str]]:
        """
        Subscribe to every non-public category of each subject.

        Raises:
            InvalidInputError: If subjects is empty, not a list or names an unknown subject
            UserNotFoundError: If the caller row is missing
        """
        if not isinstance(subjects, list) or not subjects:
            raise InvalidInputError("Invalid subjects")
        for subject in subjects:
            if not isinstance(subject, str):
                raise InvalidInputError(f"Invalid subject: {subject!r}")
            self._require_subject(subject)

        self._require_user(caller_id)

        result = {}
        for subject in subjects:
            categories = [c for c in self.catalog.categories(subject) if c != PUBLIC_CATEGORY]
            result[subject] = await self.subscribe(caller_id, subject, categories)
        return result

    async def _leave_all(self, store, subject: str) -> None:
        for category in self.catalog.categories(subject):
            if category == PUBLIC_CATEGORY:
                continue
            location = self.catalog.location(subject, category)
            try:
                await store.leave_location(location)
            except Exception as e:
                logger.error(f"Failed to leave channel {location} for {subject} {category}: {e}")

    async def unsubscribe(self, caller_id: str, subject: str) -> int:
        """
        Leave every channel of a subject and delete its subscription and
        ownership rows. Irreversible.

        Returns:
            Number of subscription rows deleted
        """
        self._require_subject(subject)
        self._require_user(caller_id)

        try:
            async with self.connections.connection() as store:
                await self._leave_all(store, subject)
        except RemoteTransientError as e:
            logger.error(f"Blob store unavailable, channels of {subject} were not left: {e}")

        try:
            with get_db_connection() as conn:
                deleted = self.subscription_repo.delete_by_subject(caller_id, subject, conn=conn)
                files = self.ownership_repo.delete_by_subject(caller_id, subject, conn=conn)
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to remove subject {subject} [user_id={caller_id}]: {e}")
            raise PersistenceError(f"Failed to remove subject {subject}") from e

        logger.info(
            f"Unsubscribed from {subject}: {deleted} subscriptions, {files} files removed [user_id={caller_id}]"
        )
        return deleted

    def list_subjects(self, caller_id: str) -> List[str]:
        return self.subscription_repo.find_subjects_with_category(caller_id, MAIN_CATEGORY)

    def list_directory(self, caller_id: str) -> List[DirectoryRecord]:
        """
        Directory records for every subject the caller holds a Main entry for.
        """
        by_subject: Dict[str, List[str]] = {}
        for entry in self.subscription_repo.find_by_user(caller_id):
            by_subject.setdefault(entry.subject, []).append(entry.category)

        records = []
        for subject, categories in by_subject.items():
            if MAIN_CATEGORY not in categories:
                continue
            record = self.catalog.directory_record(subject, categories)
            if record is not None:
                records.append(record)
        return records

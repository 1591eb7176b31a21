"""File service: uploads, owned-file listing, downloads and favorites."""

import sqlite3
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import quote

from common.logging_config import get_logger
from server import config
from server.blobstore.base import BlobItem
from server.blobstore.connection import BlobStoreConnectionManager
from server.catalog import SubjectCatalog
from server.exceptions import FileNotFoundError, InvalidInputError, PersistenceError, UserNotFoundError
from server.repositories.favorite_repository import FavoriteRepository
from server.repositories.ownership_repository import FileOwnership, OwnershipRepository
from server.repositories.user_repository import UserRepository
from server.staging import StagingClient
from server.stats_cache import StatsCache
from server.types import OwnedFile
from server.utils import epoch_seconds_to_iso, utc_now

logger = get_logger(__name__)


@dataclass(frozen=True)
class UploadResult:
    message_id: int
    file_name: str
    file_url: Optional[str] = None


@dataclass(frozen=True)
class DownloadedFile:
    name: str
    mime_type: str
    data: bytes


def parse_file_id(file_id: str) -> Tuple[str, str, int]:
    """
    Split "<subject>-<category>-<message id>".

    Subjects may contain hyphens; categories and message ids never do.

    Raises:
        InvalidInputError: If the id is malformed
    """
    parts = file_id.rsplit("-", 2)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise InvalidInputError(f"Invalid file ID: {file_id}")
    try:
        message_id = int(parts[2])
    except ValueError:
        raise InvalidInputError(f"Invalid file ID: {file_id}")
    return parts[0], parts[1], message_id


async def read_upload_payload(
    staging: StagingClient,
    data: Optional[bytes],
    staged_url: Optional[str],
) -> bytes:
    """
    Bytes of an upload, either sent inline or fetched from the staging service.

    Raises:
        InvalidInputError: If neither or both sources are given, or the file is empty or too large
    """
    if (data is None) == (not staged_url):
        raise InvalidInputError("Provide exactly one of file or staged_url")

    if staged_url:
        data = await staging.fetch(staged_url)

    if not data:
        raise InvalidInputError("Uploaded file is empty")
    if len(data) > config.MAX_UPLOAD_SIZE_BYTES:
        raise InvalidInputError(
            f"File exceeds the {config.MAX_UPLOAD_SIZE_BYTES // (1024 * 1024)}MB upload limit"
        )
    return data


def item_to_owned_file(item: BlobItem, ownership: FileOwnership) -> OwnedFile:
    return OwnedFile(
        id=ownership.file_id,
        message_id=item.native_id,
        name=item.file_name or ownership.file_name or "Unnamed File",
        size=item.size,
        uploaded_at=epoch_seconds_to_iso(item.timestamp),
        subject=ownership.subject,
        category=ownership.category,
    )


class FileService:
    def __init__(
        self,
        connections: BlobStoreConnectionManager,
        catalog: SubjectCatalog,
        staging: StagingClient,
        stats_cache: StatsCache = None,
        ownership_repo: OwnershipRepository = None,
        favorite_repo: FavoriteRepository = None,
        user_repo: UserRepository = None,
    ):
        self.connections = connections
        self.catalog = catalog
        self.staging = staging
        self.stats_cache = stats_cache
        self.ownership_repo = ownership_repo or OwnershipRepository()
        self.favorite_repo = favorite_repo or FavoriteRepository()
        self.user_repo = user_repo or UserRepository()

    def _resolve_location(self, subject: str, category: str) -> int:
        if not subject or not category:
            raise InvalidInputError("Missing subject or type")
        location = self.catalog.location(subject, category)
        if location is None:
            raise InvalidInputError(f"Invalid subject or type: {subject}/{category}")
        return location

    async def upload_file(
        self,
        owner_id: str,
        subject: str,
        category: str,
        file_name: str,
        data: Optional[bytes] = None,
        staged_url: Optional[str] = None,
    ) -> UploadResult:
        """
        Send a file to the (subject, category) channel and record its owner.

        The staged copy, if any, is deleted once the blob store holds the file.
        """
        if not file_name:
            raise InvalidInputError("Missing file name")
        location = self._resolve_location(subject, category)

        user = self.user_repo.get_by_user_id(owner_id)
        if user is None:
            raise UserNotFoundError(f"User not found: {owner_id}")

        payload = await read_upload_payload(self.staging, data, staged_url)

        async with self.connections.connection() as store:
            message_id = await store.send_item(
                location,
                payload,
                file_name,
                caption=f"Uploaded by {user.username}: {file_name}",
            )

        ownership = FileOwnership(
            location_id=location,
            message_id=message_id,
            user_id=owner_id,
            subject=subject,
            category=category,
            file_name=file_name,
            created_at=utc_now(),
        )
        try:
            self.ownership_repo.create(ownership)
        except sqlite3.Error as e:
            logger.error(f"Failed to record ownership of message {message_id} in {location}: {e}")
            raise PersistenceError(f"Failed to record upload of {file_name}") from e
        logger.info(f"Uploaded {file_name} to {subject}/{category} as message {message_id} [user_id={owner_id}]")

        if staged_url:
            await self.staging.delete_staged(staged_url)

        if config.INVALIDATE_STATS_ON_UPLOAD and self.stats_cache is not None:
            await self.stats_cache.invalidate(owner_id)

        return UploadResult(
            message_id=message_id,
            file_name=file_name,
            file_url=f"/files/{quote(ownership.file_id, safe='')}/download",
        )

    async def list_files(self, owner_id: str, subject: str, category: str) -> List[OwnedFile]:
        """
        Files the caller uploaded to a (subject, category) channel that are
        still among its most recent messages.
        """
        location = self._resolve_location(subject, category)

        owned = {row.message_id: row for row in self.ownership_repo.find_by_location(owner_id, location)}
        if not owned:
            return []

        async with self.connections.connection() as store:
            items = await store.get_recent_items(location, config.FILES_LIST_LIMIT)

        return [
            item_to_owned_file(item, owned[item.native_id])
            for item in items
            if item.has_payload and item.native_id in owned
        ]

    async def download_file(self, owner_id: str, file_id: str) -> DownloadedFile:
        """
        Raises:
            FileNotFoundError: If the caller does not own the file or the message has no payload
        """
        subject, category, message_id = parse_file_id(file_id)

        ownership = self.ownership_repo.get(owner_id, subject, category, message_id)
        if ownership is None:
            raise FileNotFoundError(f"File not found: {file_id}")

        async with self.connections.connection() as store:
            item = await store.get_item(ownership.location_id, message_id)
            if item is None or not item.has_payload:
                raise FileNotFoundError(f"File not found: {file_id}")
            data = await store.download_item(item)

        return DownloadedFile(
            name=item.display_name,
            mime_type=item.mime_type or "application/octet-stream",
            data=data,
        )

    def toggle_favorite(self, user_id: str, file_id: str) -> bool:
        """
        Flip the favorite flag of a file for the caller.

        Returns:
            Whether the file is a favorite after the call
        """
        if not file_id or not file_id.strip():
            raise InvalidInputError("Invalid file ID")

        if self.favorite_repo.exists(user_id, file_id):
            self.favorite_repo.remove(user_id, file_id)
            logger.info(f"Removed favorite {file_id} [user_id={user_id}]")
            return False

        self.favorite_repo.add(user_id, file_id, utc_now())
        logger.info(f"Added favorite {file_id} [user_id={user_id}]")
        return True

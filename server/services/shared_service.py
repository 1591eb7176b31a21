"""Files shared with everybody through each subject's Public channel."""

import re
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote

from common.constants import PUBLIC_CATEGORY
from common.logging_config import get_logger
from server import aggregator, config
from server.aggregator import CollectedItem
from server.blobstore.base import MediaKind
from server.blobstore.connection import BlobStoreConnectionManager
from server.catalog import SubjectCatalog
from server.exceptions import FileNotFoundError, InvalidInputError, UserNotFoundError
from server.repositories.user_repository import UserRepository
from server.services.file_service import DownloadedFile, UploadResult, read_upload_payload
from server.staging import StagingClient
from server.utils import epoch_seconds_to_iso

logger = get_logger(__name__)

UPLOADED_BY_PATTERN = re.compile(r"Uploaded by: (.+)$", re.MULTILINE)


@dataclass(frozen=True)
class SharedFile:
    id: str
    name: str
    size: int
    uploaded_at: str
    type: str
    uploaded_by: str
    subject: str


def parse_uploader(caption: str) -> str:
    match = UPLOADED_BY_PATTERN.search(caption or "")
    return match.group(1).strip() if match else "Unknown user"


def to_shared_file(collected: CollectedItem) -> SharedFile:
    item = collected.item
    if item.media_kind == MediaKind.PHOTO:
        mime_type = "image/jpeg"
    else:
        mime_type = item.mime_type or "application/octet-stream"

    return SharedFile(
        id=str(item.native_id),
        name=item.display_name,
        size=item.size,
        uploaded_at=epoch_seconds_to_iso(item.timestamp),
        type=mime_type,
        uploaded_by=parse_uploader(item.caption),
        subject=collected.subject,
    )


class SharedFileService:
    def __init__(
        self,
        connections: BlobStoreConnectionManager,
        catalog: SubjectCatalog,
        staging: StagingClient,
        user_repo: UserRepository = None,
    ):
        self.connections = connections
        self.catalog = catalog
        self.staging = staging
        self.user_repo = user_repo or UserRepository()

    def _public_location(self, subject: str) -> int:
        if not subject:
            raise InvalidInputError("Missing subject")
        location = self.catalog.location(subject, PUBLIC_CATEGORY)
        if location is None:
            raise InvalidInputError(f"Invalid subject or public channel not found: {subject}")
        return location

    async def list_shared_files(self, subject: Optional[str] = None) -> List[SharedFile]:
        """
        Files of one subject's Public channel, or of every Public channel.
        A channel that cannot be read contributes nothing.
        """
        if subject:
            self._public_location(subject)

        locations = self.catalog.public_locations(subject)
        catalog = {name: {PUBLIC_CATEGORY: location} for name, location in locations.items()}

        async with self.connections.connection() as store:
            collected = await aggregator.collect_items(store, catalog, config.FILES_LIST_LIMIT)

        files = [to_shared_file(c) for c in collected]
        logger.debug(f"Found {len(files)} shared files across {len(catalog)} public channels")
        return files

    async def upload_shared_file(
        self,
        user_id: str,
        subject: str,
        file_name: str,
        data: Optional[bytes] = None,
        staged_url: Optional[str] = None,
    ) -> UploadResult:
        if not file_name:
            raise InvalidInputError("Missing file name")
        location = self._public_location(subject)

        user = self.user_repo.get_by_user_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User not found: {user_id}")

        payload = await read_upload_payload(self.staging, data, staged_url)

        async with self.connections.connection() as store:
            message_id = await store.send_item(
                location,
                payload,
                file_name,
                caption=f"File: {file_name}\nUploaded by: {user.username}",
            )
        logger.info(f"Shared {file_name} in {subject} as message {message_id} [user_id={user_id}]")

        if staged_url:
            await self.staging.delete_staged(staged_url)

        return UploadResult(
            message_id=message_id,
            file_name=file_name,
            file_url=f"/shared-files/{quote(subject, safe='')}/{message_id}/download",
        )

    async def download_shared_file(self, subject: str, message_id: int) -> DownloadedFile:
        """
        Raises:
            FileNotFoundError: If the message is missing or is not a document
        """
        location = self._public_location(subject)

        async with self.connections.connection() as store:
            item = await store.get_item(location, message_id)
            if item is None or item.media_kind != MediaKind.DOCUMENT:
                raise FileNotFoundError(f"File not found: {subject}/{message_id}")
            data = await store.download_item(item)

        return DownloadedFile(
            name=item.file_name or "file",
            mime_type=item.mime_type or "application/octet-stream",
            data=data,
        )

"""Blob-store interface consumed by the services and the aggregator."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class MediaKind(str, Enum):
    DOCUMENT = "document"
    PHOTO = "photo"
    NONE = "none"


@dataclass(frozen=True)
class BlobItem:
    """
    One message of a channel.

    Attributes:
        native_id: Message id, unique only within its channel
        location: Canonical channel id the message was read from
        media_kind: Which payload the message carries, if any
        file_name: Document filename attribute (None for photos)
        size: Payload size in bytes
        timestamp: Second-granularity send time (epoch seconds)
        mime_type: Document mime type, when known
        caption: Message text
    """
    native_id: int
    location: int
    media_kind: MediaKind
    timestamp: int
    file_name: Optional[str] = None
    size: int = 0
    mime_type: Optional[str] = None
    caption: str = ""

    @property
    def has_payload(self) -> bool:
        return self.media_kind in (MediaKind.DOCUMENT, MediaKind.PHOTO)

    @property
    def display_name(self) -> str:
        if self.media_kind == MediaKind.PHOTO:
            return f"photo_{self.native_id}.jpg"
        return self.file_name or f"file_{self.native_id}"


class BlobStore(ABC):
    """
    Opaque blob store addressed by channel id + message id.

    Location ids passed in are canonical (negative); implementations convert
    them to whatever the remote API expects.
    """

    @abstractmethod
    async def connect(self) -> None:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    async def get_recent_items(self, location: int, limit: int) -> List[BlobItem]:
        """Most recent messages first, at most `limit`."""

    @abstractmethod
    async def get_item(self, location: int, native_id: int) -> Optional[BlobItem]:
        ...

    @abstractmethod
    async def download_item(self, item: BlobItem) -> bytes:
        ...

    @abstractmethod
    async def send_item(self, location: int, data: bytes, name: str, caption: str) -> int:
        """Upload a document and return its message id."""

    @abstractmethod
    async def join_location(self, location: int) -> None:
        ...

    @abstractmethod
    async def leave_location(self, location: int) -> None:
        ...

"""Telethon-backed blob store: channels are buckets, messages are blobs."""

import asyncio
import io
from typing import List, Optional

from telethon import TelegramClient
from telethon.errors import FloodWaitError, RPCError
from telethon.sessions import StringSession
from telethon.tl.functions.channels import JoinChannelRequest, LeaveChannelRequest

from common.identifiers import normalize
from common.logging_config import get_logger
from server import config
from server.blobstore.base import BlobItem, BlobStore, MediaKind
from server.exceptions import RemoteTransientError

logger = get_logger(__name__)

TRANSIENT_ERRORS = (ConnectionError, asyncio.TimeoutError, OSError)


def message_to_item(message, location: int) -> BlobItem:
    """
    Convert a Telethon Message into a BlobItem.
    """
    if message.document is not None:
        kind = MediaKind.DOCUMENT
    elif message.photo is not None:
        kind = MediaKind.PHOTO
    else:
        kind = MediaKind.NONE

    file_name = None
    size = 0
    mime_type = None
    if kind != MediaKind.NONE and message.file is not None:
        file_name = message.file.name if kind == MediaKind.DOCUMENT else None
        size = message.file.size or 0
        mime_type = message.file.mime_type

    return BlobItem(
        native_id=message.id,
        location=normalize(location),
        media_kind=kind,
        timestamp=int(message.date.timestamp()) if message.date else 0,
        file_name=file_name,
        size=size,
        mime_type=mime_type,
        caption=message.message or "",
    )


class TelegramBlobStore(BlobStore):
    """
    Blob store over a single Telegram user session.

    The client connects lazily; connection retries and the request timeout
    are fixed at the client level.
    """

    def __init__(
        self,
        api_id: int = None,
        api_hash: str = None,
        session: str = None,
        max_retries: int = 3,
    ):
        self._api_id = api_id if api_id is not None else config.TELEGRAM_API_ID
        self._api_hash = api_hash if api_hash is not None else config.TELEGRAM_API_HASH
        self._session = session if session is not None else config.TELEGRAM_SESSION
        self._max_retries = max_retries
        self._client: Optional[TelegramClient] = None

    def _ensure_client(self) -> TelegramClient:
        if self._client is None:
            if not self._session or not self._api_id or not self._api_hash:
                raise RemoteTransientError("Missing Telegram credentials")
            self._client = TelegramClient(
                StringSession(self._session),
                self._api_id,
                self._api_hash,
                connection_retries=config.TELEGRAM_CONNECTION_RETRIES,
                timeout=config.TELEGRAM_TIMEOUT_SECONDS,
            )
        return self._client

    async def connect(self) -> None:
        client = self._ensure_client()
        if client.is_connected():
            return
        try:
            await client.connect()
        except TRANSIENT_ERRORS as e:
            raise RemoteTransientError(f"Failed to connect to Telegram: {e}") from e
        logger.info("Connected to Telegram")

    async def disconnect(self) -> None:
        if self._client is not None and self._client.is_connected():
            await self._client.disconnect()
            logger.info("Disconnected from Telegram")

    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected()

    async def _retry_with_backoff(self, operation, *args, **kwargs):
        """
        Retry an operation on flood waits and dropped connections.

        Raises:
            RemoteTransientError: When every attempt failed
        """
        last_exception = None

        for attempt in range(self._max_retries):
            try:
                return await operation(*args, **kwargs)
            except FloodWaitError as e:
                last_exception = e
                delay = min(e.seconds, 30)
                logger.warning(f"Flood wait of {e.seconds}s (attempt {attempt + 1}/{self._max_retries})")
            except TRANSIENT_ERRORS as e:
                last_exception = e
                delay = 2 ** attempt
                logger.warning(
                    f"Transient failure, retrying in {delay}s (attempt {attempt + 1}/{self._max_retries}): {e}"
                )
            except RPCError as e:
                raise RemoteTransientError(f"Telegram rejected the request: {e}") from e

            if attempt < self._max_retries - 1:
                await asyncio.sleep(delay)

        raise RemoteTransientError(f"Telegram request failed: {last_exception}") from last_exception

    async def get_recent_items(self, location: int, limit: int) -> List[BlobItem]:
        client = self._ensure_client()
        messages = await self._retry_with_backoff(client.get_messages, normalize(location), limit=limit)
        return [message_to_item(message, location) for message in messages if message is not None]

    async def get_item(self, location: int, native_id: int) -> Optional[BlobItem]:
        client = self._ensure_client()
        message = await self._retry_with_backoff(client.get_messages, normalize(location), ids=native_id)
        if message is None:
            return None
        return message_to_item(message, location)

    async def download_item(self, item: BlobItem) -> bytes:
        client = self._ensure_client()
        message = await self._retry_with_backoff(client.get_messages, item.location, ids=item.native_id)
        if message is None or message.media is None:
            raise RemoteTransientError(f"Message {item.native_id} has no downloadable media")

        data = await self._retry_with_backoff(client.download_media, message, file=bytes)
        logger.info(f"Downloaded message {item.native_id} from {item.location} ({len(data)} bytes)")
        return data

    async def send_item(self, location: int, data: bytes, name: str, caption: str) -> int:
        client = self._ensure_client()
        payload = io.BytesIO(data)
        payload.name = name

        message = await self._retry_with_backoff(
            client.send_file,
            normalize(location),
            payload,
            caption=caption,
            force_document=True,
        )
        if message is None or not message.id:
            raise RemoteTransientError("Telegram did not return a message for the upload")

        logger.info(f"Uploaded {name} to {location} as message {message.id}")
        return message.id

    async def join_location(self, location: int) -> None:
        client = self._ensure_client()
        entity = await self._retry_with_backoff(client.get_input_entity, normalize(location))
        await self._retry_with_backoff(client, JoinChannelRequest(entity))

    async def leave_location(self, location: int) -> None:
        client = self._ensure_client()
        entity = await self._retry_with_backoff(client.get_input_entity, normalize(location))
        await self._retry_with_backoff(client, LeaveChannelRequest(entity))

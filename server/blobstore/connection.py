"""Shared, long-lived blob-store connection."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from common.logging_config import get_logger
from server.blobstore.base import BlobStore

logger = get_logger(__name__)


class BlobStoreConnectionManager:
    """
    Hands out one connected BlobStore to every request.

    The connection is checked before each use and re-established if the
    remote side dropped it. Only close() disconnects.
    """

    def __init__(self, store: BlobStore):
        self._store = store
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def store(self) -> BlobStore:
        return self._store

    async def _ensure_connected(self) -> None:
        if self._store.is_connected():
            return
        async with self._lock:
            if self._store.is_connected():
                return
            logger.info("Blob store not connected, connecting")
            await self._store.connect()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[BlobStore]:
        """
        Acquire the shared store for the duration of a block.

        Raises:
            RuntimeError: If the manager has been closed
            RemoteTransientError: If the store cannot (re)connect
        """
        if self._closed:
            raise RuntimeError("Blob store connection manager is closed")
        await self._ensure_connected()
        yield self._store

    async def close(self) -> None:
        self._closed = True
        async with self._lock:
            await self._store.disconnect()
        logger.info("Blob store connection closed")

"""Blob-store access: Telegram channels used as file buckets."""

from server.blobstore.base import BlobItem, BlobStore, MediaKind
from server.blobstore.connection import BlobStoreConnectionManager

__all__ = [
    "BlobItem",
    "BlobStore",
    "MediaKind",
    "BlobStoreConnectionManager",
]

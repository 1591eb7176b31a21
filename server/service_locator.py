"""Service locator for process-wide components.

main.py installs the defaults on startup; tests install fakes before the
application starts and the defaults only fill what is still missing.
"""

from typing import Optional

from common.logging_config import get_logger
from server.blobstore.connection import BlobStoreConnectionManager
from server.catalog import SubjectCatalog, load_catalog
from server.staging import StagingClient
from server.stats_cache import StatsCache, create_cache_backend

logger = get_logger(__name__)

_catalog: Optional[SubjectCatalog] = None
_blob_connections: Optional[BlobStoreConnectionManager] = None
_staging_client: Optional[StagingClient] = None
_stats_cache: Optional[StatsCache] = None


def set_catalog(catalog: SubjectCatalog):
    """Set global subject catalog instance"""
    global _catalog
    _catalog = catalog


def get_catalog() -> Optional[SubjectCatalog]:
    """Get global subject catalog instance"""
    return _catalog


def set_blob_connections(manager: BlobStoreConnectionManager):
    """Set global blob-store connection manager"""
    global _blob_connections
    _blob_connections = manager


def get_blob_connections() -> Optional[BlobStoreConnectionManager]:
    """Get global blob-store connection manager"""
    return _blob_connections


def set_staging_client(client: StagingClient):
    global _staging_client
    _staging_client = client


def get_staging_client() -> Optional[StagingClient]:
    return _staging_client


def set_stats_cache(cache: StatsCache):
    global _stats_cache
    _stats_cache = cache


def get_stats_cache() -> Optional[StatsCache]:
    return _stats_cache


def install_defaults() -> None:
    """
    Create every component that has not been installed yet.
    """
    if _catalog is None:
        set_catalog(load_catalog())

    if _blob_connections is None:
        from server.blobstore.telegram import TelegramBlobStore
        set_blob_connections(BlobStoreConnectionManager(TelegramBlobStore()))

    if _staging_client is None:
        set_staging_client(StagingClient())

    if _stats_cache is None:
        from server.services.dashboard_service import DashboardService
        dashboard = DashboardService(_blob_connections)
        set_stats_cache(StatsCache(create_cache_backend(), dashboard.compute_stats))

    logger.info("Service components installed")


async def shutdown() -> None:
    """
    Release the shared connections and forget every component.
    """
    global _catalog, _blob_connections, _staging_client, _stats_cache

    if _blob_connections is not None:
        await _blob_connections.close()
    if _stats_cache is not None:
        await _stats_cache.close()

    _catalog = None
    _blob_connections = None
    _staging_client = None
    _stats_cache = None


def get_subscription_service():
    from server.services.subscription_service import SubscriptionService
    return SubscriptionService(_blob_connections, _catalog)


def get_file_service():
    from server.services.file_service import FileService
    return FileService(_blob_connections, _catalog, _staging_client, stats_cache=_stats_cache)


def get_shared_file_service():
    from server.services.shared_service import SharedFileService
    return SharedFileService(_blob_connections, _catalog, _staging_client)

"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from common.logging_config import get_logger
from cli.api_client import ApiClient
from cli.channel_store import ChannelDirectoryStore
from cli.config import Config
from cli.models import (
    ChannelsCommand,
    DownloadCommand,
    FavoriteCommand,
    FilesCommand,
    LoginCommand,
    RegisterCommand,
    ShareCommand,
    SharedCommand,
    SharedDownloadCommand,
    StatsCommand,
    SubjectsCommand,
    SubscribeCommand,
    UnsubscribeCommand,
    UploadCommand,
)
from cli.storage import FileBroadcast, JsonFileStorage

logger = get_logger(__name__)

CONFIG_PATH = Path.home() / '.noteshare' / 'config.json'

_client: Optional[ApiClient] = None
_broadcast: Optional[FileBroadcast] = None


def get_client() -> ApiClient:
    """
    Get or create global ApiClient instance together with its channel store.

    The store lives next to the config file, so every CLI process on the
    machine shares it; ``poll_directory_changes`` picks up their writes.
    """
    global _client, _broadcast
    if _client is None:
        logger.debug("Creating new ApiClient instance")
        config = Config(CONFIG_PATH)
        _broadcast = FileBroadcast(config.get_directory_marker_path())
        store = ChannelDirectoryStore(JsonFileStorage(config.get_directory_path()), _broadcast)
        _client = ApiClient(config, store=store)
    return _client


def poll_directory_changes() -> bool:
    """Reload the channel store if another CLI process changed it."""
    if _broadcast is None:
        return False
    return _broadcast.poll()


def handle_register(cmd: RegisterCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.register(cmd.username, cmd.password)


def handle_login(cmd: LoginCommand, client: Optional[ApiClient] = None) -> str:
    """
    Handle 'login' command. A successful login also syncs the channel directory.
    """
    if client is None:
        client = get_client()
    return client.login(cmd.username, cmd.password)


def handle_subjects(cmd: SubjectsCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_subjects()


def handle_subscribe(cmd: SubscribeCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.subscribe(list(cmd.subjects))


def handle_unsubscribe(cmd: UnsubscribeCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.unsubscribe(cmd.subject)


def handle_channels(cmd: ChannelsCommand, client: Optional[ApiClient] = None) -> str:
    """
    Handle 'channels' command.

    Shows the local directory; with --sync it is refreshed from the server first.
    """
    if client is None:
        client = get_client()
    if cmd.sync:
        synced = client.sync_channels()
        if synced.startswith("Error"):
            return synced
    return client.show_channels()


def handle_files(cmd: FilesCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_files(cmd.subject, cmd.category)


def handle_upload(cmd: UploadCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.upload(cmd.file_path, cmd.subject, cmd.category)


def handle_download(cmd: DownloadCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.download(cmd.file_id, cmd.output_path)


def handle_favorite(cmd: FavoriteCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.toggle_favorite(cmd.file_id)


def handle_shared(cmd: SharedCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.list_shared(cmd.subject)


def handle_share(cmd: ShareCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.share(cmd.file_path, cmd.subject)


def handle_shared_download(cmd: SharedDownloadCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.download_shared(cmd.subject, cmd.message_id, cmd.output_path)


def handle_stats(cmd: StatsCommand, client: Optional[ApiClient] = None) -> str:
    if client is None:
        client = get_client()
    return client.stats(refresh=cmd.refresh)

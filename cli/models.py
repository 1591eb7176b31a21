"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class RegisterCommand:
    """Register a new user account."""

    username: str
    password: str
    command: Literal["register"] = "register"


@dataclass(frozen=True)
class LoginCommand:
    """Login with username and password."""

    username: str
    password: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class SubjectsCommand:
    """List subscribed subjects."""

    command: Literal["subjects"] = "subjects"


@dataclass(frozen=True)
class SubscribeCommand:
    """Subscribe to one or more subjects."""

    subjects: tuple[str, ...]
    command: Literal["subscribe"] = "subscribe"


@dataclass(frozen=True)
class UnsubscribeCommand:
    subject: str
    command: Literal["unsubscribe"] = "unsubscribe"


@dataclass(frozen=True)
class ChannelsCommand:
    """Show the local channel directory, optionally refreshing it first."""

    sync: bool = False
    command: Literal["channels"] = "channels"


@dataclass(frozen=True)
class FilesCommand:
    """List own files in one subject channel."""

    subject: str
    category: str
    command: Literal["files"] = "files"


@dataclass(frozen=True)
class UploadCommand:
    file_path: str
    subject: str
    category: str
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Download an owned file by id."""

    file_id: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class FavoriteCommand:
    file_id: str
    command: Literal["favorite"] = "favorite"


@dataclass(frozen=True)
class SharedCommand:
    """List files in the public channels."""

    subject: str | None = None
    command: Literal["shared"] = "shared"


@dataclass(frozen=True)
class ShareCommand:
    file_path: str
    subject: str
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class SharedDownloadCommand:
    subject: str
    message_id: int
    output_path: str | None = None
    command: Literal["shared-download"] = "shared-download"


@dataclass(frozen=True)
class StatsCommand:
    """Show dashboard statistics."""

    refresh: bool = False
    command: Literal["stats"] = "stats"


CommandRequest = (
    RegisterCommand
    | LoginCommand
    | SubjectsCommand
    | SubscribeCommand
    | UnsubscribeCommand
    | ChannelsCommand
    | FilesCommand
    | UploadCommand
    | DownloadCommand
    | FavoriteCommand
    | SharedCommand
    | ShareCommand
    | SharedDownloadCommand
    | StatsCommand
)

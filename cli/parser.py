"""Command parser for CLI input."""

import shlex

from cli.models import (
    ChannelsCommand,
    CommandRequest,
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


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Subject names contain spaces, so they must be quoted:
    ``files "Applied Physics" Theory``.

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name, args = tokens[0], tokens[1:]
    parser = _PARSERS.get(command_name)
    if parser is None:
        raise ParseError(f"Unknown command: {command_name}")
    return parser(args)


def _parse_credentials(name: str, args: list[str]) -> tuple[str, str]:
    if len(args) != 2:
        raise ParseError(f"{name} requires exactly 2 arguments: <username> <password>")
    return args[0], args[1]


def _parse_register(args: list[str]) -> RegisterCommand:
    username, password = _parse_credentials("register", args)
    return RegisterCommand(username=username, password=password)


def _parse_login(args: list[str]) -> LoginCommand:
    username, password = _parse_credentials("login", args)
    return LoginCommand(username=username, password=password)


def _parse_subjects(args: list[str]) -> SubjectsCommand:
    if args:
        raise ParseError("subjects takes no arguments")
    return SubjectsCommand()


def _parse_subscribe(args: list[str]) -> SubscribeCommand:
    if not args:
        raise ParseError("subscribe requires at least one subject")
    return SubscribeCommand(subjects=tuple(args))


def _parse_unsubscribe(args: list[str]) -> UnsubscribeCommand:
    if len(args) != 1:
        raise ParseError("unsubscribe requires exactly one subject (quote names with spaces)")
    return UnsubscribeCommand(subject=args[0])


def _parse_flag(name: str, flag: str, args: list[str]) -> bool:
    if not args:
        return False
    if args == [flag]:
        return True
    raise ParseError(f"{name} accepts only the {flag} flag")


def _parse_channels(args: list[str]) -> ChannelsCommand:
    return ChannelsCommand(sync=_parse_flag("channels", "--sync", args))


def _parse_stats(args: list[str]) -> StatsCommand:
    return StatsCommand(refresh=_parse_flag("stats", "--refresh", args))


def _parse_files(args: list[str]) -> FilesCommand:
    if len(args) != 2:
        raise ParseError("files requires 2 arguments: <subject> <type>")
    return FilesCommand(subject=args[0], category=args[1])


def _parse_upload(args: list[str]) -> UploadCommand:
    if len(args) != 3:
        raise ParseError("upload requires 3 arguments: <path> <subject> <type>")
    return UploadCommand(file_path=args[0], subject=args[1], category=args[2])


def _parse_download(args: list[str]) -> DownloadCommand:
    if not args:
        raise ParseError("download requires a file id")
    if len(args) > 2:
        raise ParseError("download takes at most 2 arguments: <file_id> [output_path]")
    return DownloadCommand(file_id=args[0], output_path=args[1] if len(args) > 1 else None)


def _parse_favorite(args: list[str]) -> FavoriteCommand:
    if len(args) != 1:
        raise ParseError("favorite requires exactly one file id")
    return FavoriteCommand(file_id=args[0])


def _parse_shared(args: list[str]) -> SharedCommand:
    if len(args) > 1:
        raise ParseError("shared takes at most one subject (quote names with spaces)")
    return SharedCommand(subject=args[0] if args else None)


def _parse_share(args: list[str]) -> ShareCommand:
    if len(args) != 2:
        raise ParseError("share requires 2 arguments: <path> <subject>")
    return ShareCommand(file_path=args[0], subject=args[1])


def _parse_shared_download(args: list[str]) -> SharedDownloadCommand:
    if len(args) not in (2, 3):
        raise ParseError("shared-download requires <subject> <message_id> [output_path]")
    try:
        message_id = int(args[1])
    except ValueError:
        raise ParseError(f"Invalid message id: {args[1]}")
    return SharedDownloadCommand(
        subject=args[0],
        message_id=message_id,
        output_path=args[2] if len(args) == 3 else None,
    )


_PARSERS = {
    "register": _parse_register,
    "login": _parse_login,
    "subjects": _parse_subjects,
    "subscribe": _parse_subscribe,
    "unsubscribe": _parse_unsubscribe,
    "channels": _parse_channels,
    "files": _parse_files,
    "upload": _parse_upload,
    "download": _parse_download,
    "favorite": _parse_favorite,
    "shared": _parse_shared,
    "share": _parse_share,
    "shared-download": _parse_shared_download,
    "stats": _parse_stats,
}

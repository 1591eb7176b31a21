"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from common.logging_config import get_logger
from cli.commands import (
    get_client,
    handle_channels,
    handle_download,
    handle_favorite,
    handle_files,
    handle_login,
    handle_register,
    handle_share,
    handle_shared,
    handle_shared_download,
    handle_stats,
    handle_subjects,
    handle_subscribe,
    handle_unsubscribe,
    handle_upload,
    poll_directory_changes,
)
from cli.completer import NoteShareCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
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
from cli.parser import ParseError, parse_command

logger = get_logger(__name__)

HANDLERS = {
    RegisterCommand: handle_register,
    LoginCommand: handle_login,
    SubjectsCommand: handle_subjects,
    SubscribeCommand: handle_subscribe,
    UnsubscribeCommand: handle_unsubscribe,
    ChannelsCommand: handle_channels,
    FilesCommand: handle_files,
    UploadCommand: handle_upload,
    DownloadCommand: handle_download,
    FavoriteCommand: handle_favorite,
    SharedCommand: handle_shared,
    ShareCommand: handle_share,
    SharedDownloadCommand: handle_shared_download,
    StatsCommand: handle_stats,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


def dispatch_command(cmd_obj) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return handler(cmd_obj)


def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    client = get_client()
    client.store.on_change(lambda: logger.debug("Channel directory updated by another session"))

    session: PromptSession = PromptSession(
        completer=NoteShareCompleter(client.store.get_all_subjects),
        history=InMemoryHistory(),
        style=STYLE,
    )

    clear_screen()
    show_welcome()

    while True:
        try:
            user_input = session.prompt([("class:prompt", PROMPT_TEXT)])
            command = user_input.strip()

            if not command:
                continue

            if command == "exit":
                print("Goodbye!")
                break

            if command == "help":
                print(HELP_TEXT)
                continue

            if command == "clear":
                clear_screen()
                show_welcome()
                continue

            poll_directory_changes()
            cmd_obj = parse_command(user_input)
            print(dispatch_command(cmd_obj))

        except ParseError as e:
            print(f"Error: {e}")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print("\nGoodbye!")
            break

    client.close()

"""Completer for the NoteShare CLI: commands, subjects and categories."""

import shlex
from typing import Callable, Iterable, List

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import CATEGORY_NAMES, COMMANDS, SUBJECT_ARGUMENT_POSITIONS


def _quote(value: str) -> str:
    return f'"{value}"' if " " in value else value


class NoteShareCompleter(Completer):
    """
    Completes:
    - command names for the first token
    - subject names from the channel directory where a command takes a subject
    - category names after the subject of 'files' and 'upload'
    """

    def __init__(self, subjects: Callable[[], List[str]]):
        self._subjects = subjects

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        open_quote = text.count('"') % 2 == 1
        try:
            tokens = shlex.split(text + '"' if open_quote else text)
        except ValueError:
            return

        is_typing_new_token = not open_quote and (text.endswith(" ") or not tokens)

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        position = len(tokens) if is_typing_new_token else len(tokens) - 1
        fragment = "" if is_typing_new_token else self._current_fragment(text)
        partial = fragment.lstrip('"')

        subject_position = SUBJECT_ARGUMENT_POSITIONS.get(command)
        if command == "subscribe" or position == subject_position:
            yield from self._complete_values(self._subjects(), partial, len(fragment))
        elif command in ("files", "upload") and position == subject_position + 1:
            yield from self._complete_values(CATEGORY_NAMES, partial, len(fragment))

    @staticmethod
    def _current_fragment(text: str) -> str:
        """Raw text of the token under the cursor, including an opening quote."""
        if text.count('"') % 2 == 1:
            return text[text.rfind('"'):]
        return text.split(" ")[-1]

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_values(self, values: Iterable[str], partial: str, replace_length: int) -> Iterable[Completion]:
        partial_lower = partial.lower()
        for value in sorted(values):
            if value.lower().startswith(partial_lower):
                yield Completion(_quote(value), start_position=-replace_length, display=value)

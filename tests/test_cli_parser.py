"""Tests for CLI command parsing."""

import pytest

from cli.models import (
    ChannelsCommand,
    DownloadCommand,
    FilesCommand,
    LoginCommand,
    SharedCommand,
    SharedDownloadCommand,
    StatsCommand,
    SubscribeCommand,
    UnsubscribeCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command


def test_login():
    assert parse_command('login alice secret') == LoginCommand(username='alice', password='secret')


def test_quoted_subjects():
    cmd = parse_command('subscribe "Advanced Java" "Software Engineering"')
    assert cmd == SubscribeCommand(subjects=('Advanced Java', 'Software Engineering'))


def test_unsubscribe_requires_single_subject():
    assert parse_command('unsubscribe "Advanced Java"') == UnsubscribeCommand(subject='Advanced Java')
    with pytest.raises(ParseError):
        parse_command('unsubscribe Advanced Java')


def test_files_and_upload():
    assert parse_command('files "Advanced Java" Theory') == FilesCommand(subject='Advanced Java', category='Theory')
    assert parse_command('upload notes.pdf "Advanced Java" Practical') == UploadCommand(
        file_path='notes.pdf', subject='Advanced Java', category='Practical'
    )


def test_download_with_optional_output():
    assert parse_command('download "Advanced Java-Theory-3"') == DownloadCommand(file_id='Advanced Java-Theory-3')
    assert parse_command('download Math-Theory-3 out.pdf').output_path == 'out.pdf'


def test_flags():
    assert parse_command('channels') == ChannelsCommand(sync=False)
    assert parse_command('channels --sync') == ChannelsCommand(sync=True)
    assert parse_command('stats --refresh') == StatsCommand(refresh=True)
    with pytest.raises(ParseError):
        parse_command('stats --force')


def test_shared_commands():
    assert parse_command('shared') == SharedCommand()
    assert parse_command('shared Math') == SharedCommand(subject='Math')
    assert parse_command('shared-download Math 12') == SharedDownloadCommand(subject='Math', message_id=12)
    with pytest.raises(ParseError):
        parse_command('shared-download Math twelve')


@pytest.mark.parametrize('line', ['', '   ', 'unknown', 'login alice', 'files Math', 'subscribe', 'say "unterminated'])
def test_invalid_input(line):
    with pytest.raises(ParseError):
        parse_command(line)

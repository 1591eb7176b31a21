"""Tests for the CLI HTTP client using httpx.MockTransport."""

import json

import httpx
import pytest

from cli.api_client import ApiClient, filename_from_disposition
from cli.channel_store import ChannelDirectoryStore
from cli.storage import LocalBroadcast, MemoryStorage
from common.types import DirectoryRecord

CHANNELS = [{
    'subject': 'Math',
    'mainChannelId': 100,
    'subChannels': [
        {'name': 'Math-Theory', 'id': 101, 'inviteLink': None},
        {'name': 'Math-Practical', 'id': -102, 'inviteLink': None},
    ],
}]


class Recorder:
    """Routes requests to canned responses and remembers them."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={'detail': 'Not Found'})
        return handler(request) if callable(handler) else handler


@pytest.fixture
def store():
    return ChannelDirectoryStore(MemoryStorage(), LocalBroadcast())


def make_client(config, store, routes):
    recorder = Recorder(routes)
    return ApiClient(config, store=store, transport=httpx.MockTransport(recorder)), recorder


def test_register_saves_key(temp_config, store):
    client, _ = make_client(temp_config, store, {
        ('POST', '/auth/register'): httpx.Response(201, json={'api_key': 'notes_k', 'user_id': 'u1'}),
    })

    result = client.register('alice', 'pw')

    assert 'Registration successful' in result
    assert temp_config.get_api_key() == 'notes_k'


def test_login_syncs_channel_directory(temp_config, store):
    client, recorder = make_client(temp_config, store, {
        ('POST', '/auth/login'): httpx.Response(200, json={'api_key': 'notes_k'}),
        ('GET', '/channels'): httpx.Response(200, json=CHANNELS),
    })

    result = client.login('alice', 'pw')

    assert 'Login successful' in result
    assert store.get_all_subjects() == ['Math']
    assert store.get_main_channel_id('Math') == -100
    assert store.get_channel_id('Math', 'Theory') == -101
    assert recorder.requests[-1].headers['Authorization'] == 'Bearer notes_k'


def test_requests_carry_request_id(temp_config, store):
    temp_config.set_api_key('notes_k')
    client, recorder = make_client(temp_config, store, {
        ('GET', '/subjects'): httpx.Response(200, json=['Math']),
    })

    assert 'Math' in client.list_subjects()
    assert recorder.requests[0].headers['X-Request-ID']


def test_not_logged_in(temp_config, store):
    client, recorder = make_client(temp_config, store, {})

    assert client.list_subjects().startswith('Error: Not logged in')
    assert recorder.requests == []


def test_error_codes_map_to_messages(temp_config, store):
    temp_config.set_api_key('notes_k')
    client, _ = make_client(temp_config, store, {
        ('GET', '/subjects'): httpx.Response(401, json={'detail': 'x', 'code': 'INVALID_API_KEY'}),
    })

    assert 'Please run: login' in client.list_subjects()


def test_subscribe_posts_subjects_and_resyncs(temp_config, store):
    temp_config.set_api_key('notes_k')
    client, recorder = make_client(temp_config, store, {
        ('POST', '/subjects'): httpx.Response(200, json={'success': True, 'subscribed': {'Math': ['Main', 'Theory']}}),
        ('GET', '/channels'): httpx.Response(200, json=CHANNELS),
    })

    result = client.subscribe(['Math'])

    assert 'Subscribed to Math: Main, Theory' in result
    assert json.loads(recorder.requests[0].content) == {'subjects': ['Math']}
    assert store.has_subject('Math')


def test_unsubscribe_quotes_subject(temp_config, store):
    temp_config.set_api_key('notes_k')
    client, recorder = make_client(temp_config, store, {
        ('DELETE', '/subjects/Advanced Java'): httpx.Response(200, json={'success': True, 'removed_subscriptions': 3}),
        ('GET', '/channels'): httpx.Response(200, json=[]),
    })

    result = client.unsubscribe('Advanced Java')

    assert '3 channels removed' in result
    assert recorder.requests[0].url.raw_path == b'/subjects/Advanced%20Java'


def test_upload_checks_local_directory(temp_config, store, sample_file):
    temp_config.set_api_key('notes_k')
    store.set_channels([])
    client, recorder = make_client(temp_config, store, {
        ('GET', '/channels'): httpx.Response(200, json=CHANNELS),
        ('POST', '/upload'): httpx.Response(200, json={'success': True, 'message_id': 5, 'file_name': 'notes.pdf'}),
    })
    client.sync_channels()

    assert 'No Lab channel' in client.upload(str(sample_file), 'Math', 'Lab')

    result = client.upload(str(sample_file), 'Math', 'Theory')
    assert result == 'Uploaded: notes.pdf (message 5)'
    upload_request = recorder.requests[-1]
    assert b'name="type"' in upload_request.content
    assert b'%PDF-1.4 sample content' in upload_request.content


def test_upload_missing_file(temp_config, store, tmp_path):
    temp_config.set_api_key('notes_k')
    client, _ = make_client(temp_config, store, {})

    assert client.upload(str(tmp_path / 'nope.pdf'), 'Math', 'Theory').startswith('Error: File not found')


def test_download_writes_file(temp_config, store, tmp_path):
    temp_config.set_api_key('notes_k')
    client, _ = make_client(temp_config, store, {
        ('GET', '/files/Math-Theory-5/download'): httpx.Response(
            200,
            content=b'bytes',
            headers={'Content-Disposition': 'attachment; filename="notes.pdf"'},
        ),
    })

    result = client.download('Math-Theory-5', str(tmp_path))

    assert (tmp_path / 'notes.pdf').read_bytes() == b'bytes'
    assert 'Downloaded: notes.pdf' in result


def test_download_uses_utf8_file_name(temp_config, store, tmp_path):
    temp_config.set_api_key('notes_k')
    client, _ = make_client(temp_config, store, {
        ('GET', '/files/Math-Theory-6/download'): httpx.Response(
            200,
            content=b'bytes',
            headers={'Content-Disposition': "attachment; filename=\"r_sum_.pdf\"; filename*=UTF-8''r%C3%A9sum%C3%A9.pdf"},
        ),
    })

    client.download('Math-Theory-6', str(tmp_path))

    assert (tmp_path / 'r\u00e9sum\u00e9.pdf').read_bytes() == b'bytes'


@pytest.mark.parametrize('header, expected', [
    ('attachment; filename="notes.pdf"', 'notes.pdf'),
    ("attachment; filename=\"a.pdf\"; filename*=UTF-8''%E0%A4%A8.pdf", '\u0928.pdf'),
    ('attachment; filename="../../etc/passwd"', 'passwd'),
    ('attachment', None),
])
def test_filename_from_disposition(header, expected):
    assert filename_from_disposition(header) == expected


def test_server_errors_are_retried(temp_config, store, monkeypatch):
    monkeypatch.setattr('cli.api_client.time.sleep', lambda seconds: None)
    temp_config.set_api_key('notes_k')
    responses = iter([
        httpx.Response(503, json={'detail': 'down', 'code': 'REMOTE_UNAVAILABLE'}),
        httpx.Response(200, json=['Math']),
    ])
    client, recorder = make_client(temp_config, store, {
        ('GET', '/subjects'): lambda request: next(responses),
    })

    assert 'Math' in client.list_subjects()
    assert len(recorder.requests) == 2


def test_connection_failure_is_reported(temp_config, store, monkeypatch):
    monkeypatch.setattr('cli.api_client.time.sleep', lambda seconds: None)
    temp_config.set_api_key('notes_k')

    def refuse(request):
        raise httpx.ConnectError('refused', request=request)

    client = ApiClient(temp_config, store=store, transport=httpx.MockTransport(refuse))

    assert client.list_subjects() == 'Error: Cannot connect to NoteShare server. Is it running?'


def test_show_channels_renders_local_directory(temp_config, store):
    client, _ = make_client(temp_config, store, {})
    assert 'No channels' in client.show_channels()

    store.add_channel(DirectoryRecord.from_dict(CHANNELS[0]))
    rendered = client.show_channels()
    assert 'Math' in rendered and '-101' in rendered

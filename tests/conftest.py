"""Shared pytest fixtures for all tests."""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

from cli.config import Config
from common.identifiers import normalize
from server import config as server_config
from server import service_locator
from server.blobstore.base import BlobItem, BlobStore, MediaKind
from server.blobstore.connection import BlobStoreConnectionManager
from server.catalog import SubjectCatalog
from server.database import init_database

BASE_TIMESTAMP = 1_700_000_000


class FakeBlobStore(BlobStore):
    """
    In-memory channels. Items are kept per location; message ids are
    assigned per location, like Telegram does.
    """

    def __init__(self):
        self.items: Dict[int, List[BlobItem]] = {}
        self.payloads: Dict[Tuple[int, int], bytes] = {}
        self.failing_locations: Set[int] = set()
        self.failing_joins: Set[int] = set()
        self.failing_leaves: Set[int] = set()
        self.joined: List[int] = []
        self.left: List[int] = []
        self.connected = False
        self.connect_calls = 0
        self.fetch_calls = 0
        self.fetch_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.sent: List[Tuple[int, str, str]] = []

    def add_item(
        self,
        location: int,
        media_kind: MediaKind = MediaKind.DOCUMENT,
        file_name: Optional[str] = None,
        timestamp: Optional[int] = None,
        size: int = 10,
        caption: str = "",
        data: bytes = b"payload",
        mime_type: Optional[str] = None,
    ) -> BlobItem:
        location = normalize(location)
        existing = self.items.setdefault(location, [])
        native_id = len(existing) + 1
        item = BlobItem(
            native_id=native_id,
            location=location,
            media_kind=media_kind,
            timestamp=timestamp if timestamp is not None else BASE_TIMESTAMP + native_id,
            file_name=file_name,
            size=size,
            mime_type=mime_type,
            caption=caption,
        )
        existing.append(item)
        self.payloads[(location, native_id)] = data
        return item

    async def connect(self) -> None:
        self.connect_calls += 1
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    async def get_recent_items(self, location: int, limit: int) -> List[BlobItem]:
        self.fetch_calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.fetch_delay:
                await asyncio.sleep(self.fetch_delay)
            if normalize(location) in self.failing_locations:
                raise ConnectionError(f"channel {location} unreachable")
            items = sorted(self.items.get(normalize(location), []), key=lambda i: i.native_id, reverse=True)
            return items[:limit]
        finally:
            self.in_flight -= 1

    async def get_item(self, location: int, native_id: int) -> Optional[BlobItem]:
        for item in self.items.get(normalize(location), []):
            if item.native_id == native_id:
                return item
        return None

    async def download_item(self, item: BlobItem) -> bytes:
        return self.payloads[(item.location, item.native_id)]

    async def send_item(self, location: int, data: bytes, name: str, caption: str) -> int:
        item = self.add_item(location, file_name=name, size=len(data), caption=caption, data=data)
        self.sent.append((normalize(location), name, caption))
        return item.native_id

    async def join_location(self, location: int) -> None:
        if normalize(location) in self.failing_joins:
            raise ConnectionError(f"cannot join {location}")
        self.joined.append(normalize(location))

    async def leave_location(self, location: int) -> None:
        if normalize(location) in self.failing_leaves:
            raise ConnectionError(f"cannot leave {location}")
        self.left.append(normalize(location))


MATH = "Math"
PHYSICS = "Physics"

TEST_CHANNELS = {
    MATH: {"Main": -100, "Theory": -101, "Practical": -102, "Public": -103},
    PHYSICS: {"Main": -200, "Theory": -201, "Practical": -202, "Public": -203},
}


@pytest.fixture
def fake_store():
    return FakeBlobStore()


@pytest.fixture
def connections(fake_store):
    return BlobStoreConnectionManager(fake_store)


@pytest.fixture
def catalog():
    return SubjectCatalog(TEST_CHANNELS, links={MATH: {"Theory": "https://t.me/+math-theory"}})


@pytest.fixture
def test_db(tmp_path, monkeypatch) -> Path:
    """
    Create a temporary test database for each test.
    """
    db_path = tmp_path / "test.db"
    monkeypatch.setattr(server_config, "DATABASE_PATH", str(db_path))
    init_database()
    return db_path


@pytest.fixture
def reset_locator():
    yield
    service_locator.set_catalog(None)
    service_locator.set_blob_connections(None)
    service_locator.set_staging_client(None)
    service_locator.set_stats_cache(None)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .noteshare directory
    """
    config_dir = tmp_path / '.noteshare'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def sample_file(tmp_path):
    file_path = tmp_path / 'notes.pdf'
    file_path.write_bytes(b'%PDF-1.4 sample content')
    return file_path


@pytest.fixture
def user_id(test_db):
    """A registered user row; foreign keys require one."""
    from server.repositories.user_repository import UserRepository
    from server.utils import utc_now

    UserRepository.create_user(
        user_id="user-1",
        username="alice",
        password_hash="hash",
        api_key="notes_test-key",
        created_at=utc_now(),
    )
    return "user-1"

"""Client-side directory of subscribed subjects and their channel ids."""

import json
import uuid
from typing import Callable, Dict, Iterable, List, Optional

from common.constants import DIRECTORY_STORAGE_KEY
from common.identifiers import normalize
from common.logging_config import get_logger
from common.types import DirectoryRecord
from cli.storage import Broadcast, KeyValueStorage

logger = get_logger(__name__)


class ChannelDirectoryStore:
    """
    Subject -> DirectoryRecord map persisted in a KeyValueStorage.

    Several stores may share one storage key (one per shell or process).
    Each write is announced on the broadcast; the other stores reload and
    fire their ``on_change`` listeners. Last write wins.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        broadcast: Broadcast,
        storage_key: str = DIRECTORY_STORAGE_KEY,
    ):
        self.storage = storage
        self.broadcast = broadcast
        self.storage_key = storage_key
        self.store_id = uuid.uuid4().hex
        self._records: Dict[str, DirectoryRecord] = {}
        self._listeners: List[Callable[[], None]] = []

        self.broadcast.subscribe(self._on_broadcast)
        self.load_from_storage()

    def _on_broadcast(self, key: str, origin: str) -> None:
        if key != self.storage_key or origin == self.store_id:
            return
        logger.debug(f"Directory changed by another store, reloading {key}")
        self.load_from_storage()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def on_change(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def load_from_storage(self) -> None:
        """
        Replace the in-memory map with the persisted list.
        Unreadable data leaves the store empty.
        """
        self._records.clear()

        raw = self.storage.get(self.storage_key)
        if not raw:
            return

        try:
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError("directory payload is not a list")
            records = [DirectoryRecord.from_dict(entry).normalized() for entry in entries]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error loading channels from storage: {e}")
            self._records.clear()
            return

        for record in records:
            self._records[record.subject] = record
        logger.debug(f"Loaded channels: {self.get_all_subjects()}")

    def _save(self) -> None:
        payload = json.dumps([record.to_dict() for record in self._records.values()])
        self.storage.set(self.storage_key, payload)
        self.broadcast.publish(self.storage_key, self.store_id)

    def set_channels(self, records: Iterable[DirectoryRecord]) -> None:
        """Replace the whole directory."""
        self._records.clear()
        for record in records:
            normalized = record.normalized()
            self._records[normalized.subject] = normalized
        self._save()
        self._notify()

    def add_channel(self, record: DirectoryRecord) -> None:
        normalized = record.normalized()
        self._records[normalized.subject] = normalized
        self._save()
        self._notify()

    def get_channel_id(self, subject: str, category: str) -> Optional[int]:
        """
        Id of the first sub-channel whose name contains ``category``.

        Matching is by substring, so "Theory" also finds "Theory Notes".
        """
        record = self._records.get(subject)
        if record is None:
            logger.debug(f"No channel found for subject: {subject}")
            return None

        for sub in record.sub_locations:
            if category in sub.name:
                return normalize(sub.location)

        logger.debug(f"No subchannel found for type: {category} in subject: {subject}")
        return None

    def get_main_channel_id(self, subject: str) -> Optional[int]:
        record = self._records.get(subject)
        if record is None:
            return None
        return normalize(record.main_location)

    def has_subject(self, subject: str) -> bool:
        return subject in self._records

    def get_all_subjects(self) -> List[str]:
        return list(self._records.keys())

    def get_record(self, subject: str) -> Optional[DirectoryRecord]:
        return self._records.get(subject)

    def clear_store(self) -> None:
        self._records.clear()
        self.storage.remove(self.storage_key)
        self.broadcast.publish(self.storage_key, self.store_id)
        self._notify()
        logger.debug("Channel store cleared")

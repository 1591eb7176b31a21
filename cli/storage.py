"""Key/value persistence and change notification used by the channel store."""

import json
import os
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, List, Optional

from common.logging_config import get_logger

logger = get_logger(__name__)

ChangeListener = Callable[[str, str], None]


class KeyValueStorage(ABC):
    """String values stored under string keys."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStorage(KeyValueStorage):
    """
    Storage backed by a dict.

    Passing the same dict to several instances emulates several client
    contexts reading and writing one shared storage area.
    """

    def __init__(self, shared: Optional[Dict[str, str]] = None):
        self._data = shared if shared is not None else {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """
    Every key lives in one JSON document on disk.

    The file is re-read on each access so writes by other processes are seen.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not read {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        with open(tmp_path, 'w') as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class Broadcast(ABC):
    """
    Change notification between stores that share a storage area.

    Listeners receive ``(key, origin)`` where origin identifies the writer,
    so a store can ignore its own messages.
    """

    @abstractmethod
    def publish(self, key: str, origin: str) -> None:
        ...

    @abstractmethod
    def subscribe(self, listener: ChangeListener) -> None:
        ...


class LocalBroadcast(Broadcast):
    """In-process hub delivering every message synchronously."""

    def __init__(self):
        self._listeners: List[ChangeListener] = []

    def publish(self, key: str, origin: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(key, origin)
            except Exception as e:
                logger.error(f"Change listener failed for {key}: {e}", exc_info=True)

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)


class FileBroadcast(Broadcast):
    """
    Cross-process notification through a marker file.

    ``publish`` rewrites the marker with a fresh token; ``poll`` compares the
    marker with the last token this instance saw and notifies its listeners
    when another writer changed it. The REPL polls before each command.
    """

    def __init__(self, marker_path: Path):
        self.marker_path = Path(marker_path)
        self._listeners: List[ChangeListener] = []
        self._last_token = self._read_marker().get('token')

    def _read_marker(self) -> dict:
        if not self.marker_path.exists():
            return {}
        try:
            with open(self.marker_path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError):
            return {}
        return data if isinstance(data, dict) else {}

    def publish(self, key: str, origin: str) -> None:
        token = uuid.uuid4().hex
        marker = {'key': key, 'origin': origin, 'token': token, 'time': time.time()}
        try:
            self.marker_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.marker_path, 'w') as f:
                json.dump(marker, f)
        except IOError as e:
            logger.warning(f"Could not write change marker {self.marker_path}: {e}")
            return
        self._last_token = token

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def poll(self) -> bool:
        """
        Deliver a pending change from another process, if any.

        Returns:
            True if listeners were notified
        """
        marker = self._read_marker()
        token = marker.get('token')
        if not token or token == self._last_token:
            return False

        self._last_token = token
        for listener in list(self._listeners):
            listener(marker.get('key', ''), marker.get('origin', ''))
        return True

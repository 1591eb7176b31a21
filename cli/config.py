"""Configuration management for the NoteShare CLI."""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from common.constants import DEFAULT_SERVER_PORT


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "server_host": os.environ.get("NOTES_SERVER_HOST", "localhost"),
        "server_port": int(os.environ.get("NOTES_SERVER_PORT", str(DEFAULT_SERVER_PORT))),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.noteshare/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        A corrupt file is copied to ``config.json.bak`` and defaults are used.
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.noteshare' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError):
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    pass
                return self.DEFAULT_CONFIG.copy()

        config = self.DEFAULT_CONFIG.copy()
        try:
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
        except IOError:
            pass
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError:
            pass

    def get_api_key(self) -> Optional[str]:
        return self.data.get('api_key')

    def set_api_key(self, key: str) -> None:
        """
        Set API key and save to file.

        Args:
            key: API key string (format: "notes_<uuid>")
        """
        self.data['api_key'] = key
        self.save()

    def clear_api_key(self) -> None:
        self.data.pop('api_key', None)
        self.save()

    def get_base_url(self) -> str:
        """
        Get server base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        host = self.data.get('server_host', 'localhost')
        port = self.data.get('server_port', DEFAULT_SERVER_PORT)
        return f"http://{host}:{port}"

    def get_timeout(self) -> int:
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_directory_path(self) -> Path:
        """File holding the channel directory, next to the config file."""
        return self.config_path.parent / 'channels.json'

    def get_directory_marker_path(self) -> Path:
        return self.config_path.parent / 'channels.changed'

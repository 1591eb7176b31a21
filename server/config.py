"""Configuration settings for the NoteShare server."""

import os

from common.constants import DEFAULT_SERVER_PORT


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_PATH = os.environ.get("NOTES_DATABASE_PATH", "/app/data/noteshare.db")

SERVER_HOST = os.environ.get("NOTES_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("NOTES_PORT", str(DEFAULT_SERVER_PORT)))

TELEGRAM_API_ID = int(os.environ.get("TELEGRAM_API_ID", "0"))

TELEGRAM_API_HASH = os.environ.get("TELEGRAM_API_HASH", "")

TELEGRAM_SESSION = os.environ.get("TELEGRAM_SESSION", "")

TELEGRAM_CONNECTION_RETRIES = 5

TELEGRAM_TIMEOUT_SECONDS = 30

# Empty means the in-process memory cache.
REDIS_URL = os.environ.get("NOTES_REDIS_URL", "")

STATS_CACHE_TTL_SECONDS = int(os.environ.get("NOTES_STATS_TTL_SECONDS", "60"))

STATS_CACHE_KEY_PREFIX = "dashboard:stats:"

MESSAGES_LIMIT = int(os.environ.get("NOTES_MESSAGES_LIMIT", "50"))

FILES_LIST_LIMIT = 100

RECENT_UPLOADS_LIMIT = 5

FANOUT_CONCURRENCY = int(os.environ.get("NOTES_FANOUT_CONCURRENCY", "8"))

STAGING_BASE_URL = os.environ.get("NOTES_STAGING_URL", "")

STAGING_TIMEOUT_SECONDS = 60

CATALOG_PATH = os.environ.get("NOTES_CATALOG_PATH", "")

INVALIDATE_STATS_ON_UPLOAD = _env_bool("NOTES_INVALIDATE_STATS_ON_UPLOAD", False)

MAX_UPLOAD_SIZE_BYTES = 50 * 1024 * 1024

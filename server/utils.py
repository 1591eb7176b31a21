"""Utility helper functions for the server."""

import uuid
from datetime import datetime, timezone


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_current_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.
    """
    return utc_now().isoformat()


def epoch_seconds_to_iso(seconds: int) -> str:
    """
    Convert a second-granularity remote timestamp to an ISO string.
    """
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()

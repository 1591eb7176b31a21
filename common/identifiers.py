"""Canonical form of storage-location (channel) identifiers.

Telegram reports the same channel as a positive id in some responses and as
a negative ``-100...`` id in others. Every location id is stored, compared
and used as a map key in its negative form.
"""


def normalize(location_id: int) -> int:
    """Return the canonical (non-positive) form of a location id."""
    return -abs(location_id)


def validate_location(location_id) -> int:
    """
    Check that a value can be used as a location id.

    Args:
        location_id: Value read from a request, config file or cache

    Returns:
        The value as an int

    Raises:
        ValueError: If the value is not an integer or is zero
    """
    if isinstance(location_id, bool):
        raise ValueError(f"Invalid location id: {location_id!r}")
    if isinstance(location_id, str):
        try:
            location_id = int(location_id.strip())
        except ValueError:
            raise ValueError(f"Invalid location id: {location_id!r}")
    if not isinstance(location_id, int):
        raise ValueError(f"Invalid location id: {location_id!r}")
    if location_id == 0:
        raise ValueError("Location id 0 does not identify a channel")
    return location_id


def canonical_location(location_id) -> int:
    """Validate then normalize."""
    return normalize(validate_location(location_id))

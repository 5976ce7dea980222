"""Utility helper functions for the package server."""

import uuid
from datetime import datetime, timezone


def generate_object_id() -> str:
    """
    Generate a new opaque object id.

    Returns:
        UUID4 hex string
    """
    return uuid.uuid4().hex


def get_current_timestamp() -> str:
    """
    Get current UTC timestamp in ISO format.
    """
    return datetime.now(timezone.utc).isoformat()

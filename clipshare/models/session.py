"""Session-related data models."""

from enum import Enum


class SessionState(str, Enum):
    """Per-connection sync state."""

    JOINING = "joining"  # snapshot queued, not yet written
    SYNCED = "synced"
    CLOSED = "closed"

"""Broadcast hub module."""

from .hub import BroadcastHub, SnapshotTooLargeError
from .session import ISessionTransport, Session

__all__ = ["BroadcastHub", "ISessionTransport", "Session", "SnapshotTooLargeError"]

"""ClipShare: real-time shared clipboard hub."""

from .app import Application, IApplication
from .hub import BroadcastHub, ISessionTransport, Session, SnapshotTooLargeError
from .models import FileDescriptor, Message, MessageKind, SessionState
from .store import IMessageStore, MessageStore
from .uploads import UploadStore, UploadTooLargeError

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "FileDescriptor",
    "Message",
    "MessageKind",
    "SessionState",
    # Components
    "IMessageStore",
    "MessageStore",
    "BroadcastHub",
    "ISessionTransport",
    "Session",
    "SnapshotTooLargeError",
    "UploadStore",
    "UploadTooLargeError",
]

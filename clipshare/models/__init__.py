"""Core data models for ClipShare."""

from .messages import FileDescriptor, Message, MessageKind
from .session import SessionState

__all__ = [
    # Messages
    "FileDescriptor",
    "Message",
    "MessageKind",
    # Sessions
    "SessionState",
]

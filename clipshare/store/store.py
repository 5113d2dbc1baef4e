"""In-memory message store."""

from typing import Protocol

from ..models import Message


class IMessageStore(Protocol):
    """Append-only message history for the lifetime of the process."""

    def append(self, message: Message) -> int:
        """Add a message to the end of the history. Return its index."""
        ...

    def snapshot(self) -> tuple[Message, ...]:
        """Return the full history as of this call."""
        ...

    def __len__(self) -> int:
        ...


class MessageStore:
    """List-backed history. Every snapshot is a prefix of every later one."""

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, message: Message) -> int:
        self._messages.append(message)
        return len(self._messages) - 1

    def snapshot(self) -> tuple[Message, ...]:
        # Messages are frozen, so a shallow copy is a full value copy
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

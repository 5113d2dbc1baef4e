"""Message-related data models."""

import copy
from dataclasses import dataclass, field
from enum import Enum


class MessageKind(str, Enum):
    """Message variants; values are the wire `type` field."""

    TEXT = "text"
    FILE = "file"


@dataclass(frozen=True)
class FileDescriptor:
    """Metadata of a stored upload. The hub never sees the file bytes."""

    filename: str  # stored name on disk
    original_name: str
    size: int  # bytes
    mimetype: str
    path: str  # access path, e.g. /uploads/<filename>

    @property
    def is_image(self) -> bool:
        return self.mimetype.startswith("image/")

    def to_wire(self) -> dict:
        return {
            "filename": self.filename,
            "originalName": self.original_name,
            "size": self.size,
            "mimetype": self.mimetype,
            "path": self.path,
        }


@dataclass(frozen=True)
class Message:
    """
    A single clipboard entry, immutable once created.

    Messages received from a client keep the client's JSON object in `raw`
    so the hub relays exactly what was sent, unknown fields included.
    """

    kind: MessageKind
    timestamp: str  # ISO-8601, assigned by the sending client
    text: str | None = None
    file: FileDescriptor | None = None
    raw: dict | None = field(default=None, compare=False, repr=False)

    @classmethod
    def text_message(cls, text: str, timestamp: str) -> "Message":
        return cls(kind=MessageKind.TEXT, timestamp=timestamp, text=text)

    @classmethod
    def file_message(cls, file: FileDescriptor, timestamp: str) -> "Message":
        return cls(kind=MessageKind.FILE, timestamp=timestamp, file=file)

    def to_wire(self) -> dict:
        """Serialize to the JSON shape exchanged with clients."""
        if self.raw is not None:
            return copy.deepcopy(self.raw)

        data: dict = {"type": self.kind.value, "timestamp": self.timestamp}
        if self.kind is MessageKind.TEXT:
            data["text"] = self.text
        else:
            data["file"] = self.file.to_wire() if self.file else None
        return data

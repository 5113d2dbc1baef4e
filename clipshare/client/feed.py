"""Newest-first message feed and card rendering for clients."""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable

from ..models import Message, MessageKind

SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_file_size(size: int) -> str:
    """Human-readable size: 0 Bytes, 1 KB, 1.5 MB, ..."""
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(SIZE_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / 1024**exponent, 2)
    return f"{value:g} {SIZE_UNITS[exponent]}"


def format_timestamp(timestamp: str) -> str:
    """Render an ISO-8601 timestamp in local time; unparseable values pass through."""
    try:
        moment = datetime.fromisoformat(timestamp)
    except ValueError:
        return timestamp
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%H:%M:%S %Y-%m-%d")


@dataclass(frozen=True)
class Card:
    """Display model of one message."""

    kind: MessageKind
    time_label: str
    text: str | None = None  # copyable text
    file_name: str | None = None
    size_label: str | None = None
    download_url: str | None = None
    preview_url: str | None = None  # images only


def render_card(message: Message, base_url: str = "") -> Card:
    """Build the display model for a message."""
    time_label = format_timestamp(message.timestamp)
    if message.kind is MessageKind.TEXT or message.file is None:
        return Card(kind=message.kind, time_label=time_label, text=message.text)

    descriptor = message.file
    download_url = f"{base_url.rstrip('/')}{descriptor.path}"
    return Card(
        kind=MessageKind.FILE,
        time_label=time_label,
        file_name=descriptor.original_name,
        size_label=format_file_size(descriptor.size),
        download_url=download_url,
        preview_url=download_url if descriptor.is_image else None,
    )


class MessageFeed:
    """
    Visible message list, newest at the top.

    Every message, from the snapshot or from a broadcast, is inserted at the
    top. Snapshot items arrive oldest first, so inserting them in order
    leaves the newest on top.
    """

    def __init__(
        self,
        base_url: str = "",
        on_insert: Callable[[Message], None] | None = None,
        on_reset: Callable[[], None] | None = None,
    ):
        self._base_url = base_url
        self._on_insert = on_insert
        self._on_reset = on_reset
        self._entries: deque[Message] = deque()

    def load_initial(self, messages: Iterable[Message]) -> None:
        """Replace the feed with a snapshot (sent on every (re)connect)."""
        self._entries.clear()
        if self._on_reset:
            self._on_reset()
        for message in messages:
            self._insert_top(message)

    def receive(self, message: Message) -> None:
        """Show a live broadcast."""
        self._insert_top(message)

    @property
    def messages(self) -> list[Message]:
        """Messages in display order (newest first)."""
        return list(self._entries)

    def cards(self) -> list[Card]:
        return [render_card(message, self._base_url) for message in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def _insert_top(self, message: Message) -> None:
        self._entries.appendleft(message)
        if self._on_insert:
            self._on_insert(message)

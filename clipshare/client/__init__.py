"""Clipboard client agent."""

from .agent import ClipboardClient, NotConnectedError, UploadError, iso_now
from .feed import Card, MessageFeed, format_file_size, render_card

__all__ = [
    "Card",
    "ClipboardClient",
    "MessageFeed",
    "NotConnectedError",
    "UploadError",
    "format_file_size",
    "iso_now",
    "render_card",
]

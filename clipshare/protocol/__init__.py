"""Sync channel wire protocol."""

from .codec import (
    Event,
    InvalidMessageError,
    ProtocolError,
    decode_frame,
    encode_broadcast,
    encode_frame,
    encode_snapshot,
    parse_message,
)
from .schemas import FileDescriptorPayload

__all__ = [
    "Event",
    "FileDescriptorPayload",
    "InvalidMessageError",
    "ProtocolError",
    "decode_frame",
    "encode_broadcast",
    "encode_frame",
    "encode_snapshot",
    "parse_message",
]

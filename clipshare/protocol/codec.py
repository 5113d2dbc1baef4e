"""Frame encoding and message validation for the sync channel."""

import copy
import dataclasses
import json
from enum import Enum
from typing import Any, Iterable

from pydantic import TypeAdapter, ValidationError

from ..models import Message
from .schemas import Envelope, MessagePayload


class Event(str, Enum):
    """Events exchanged over the sync channel."""

    INITIAL_MESSAGES = "initial-messages"  # server -> client, once per connection
    MESSAGE_RECEIVED = "message-received"  # server -> client, per append
    NEW_MESSAGE = "new-message"  # client -> server


class ProtocolError(ValueError):
    """A frame could not be decoded."""


class InvalidMessageError(ProtocolError):
    """A frame decoded but its message payload has the wrong shape."""


_message_adapter: TypeAdapter = TypeAdapter(MessagePayload)


def encode_frame(event: Event, data: Any) -> str:
    """Encode an event and its payload as a JSON text frame."""
    return json.dumps(
        {"event": event.value, "data": data},
        ensure_ascii=False,
        separators=(",", ":"),
    )


def decode_frame(raw: str | bytes) -> tuple[str, Any]:
    """Decode a JSON text frame into (event name, payload)."""
    try:
        envelope = Envelope.model_validate_json(raw)
    except ValidationError as e:
        raise ProtocolError(f"Malformed frame: {e.error_count()} error(s)") from e
    return envelope.event, envelope.data


def parse_message(data: Any) -> Message:
    """
    Validate a client-supplied message payload and build a Message.

    The returned Message serializes back to a copy of `data` itself, not to
    the validated model, so coerced values and extra keys go out unchanged.
    """
    try:
        payload = _message_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidMessageError(str(e)) from e
    return dataclasses.replace(payload.to_message(), raw=copy.deepcopy(data))


def encode_snapshot(messages: Iterable[Message]) -> str:
    return encode_frame(
        Event.INITIAL_MESSAGES, [message.to_wire() for message in messages]
    )


def encode_broadcast(message: Message) -> str:
    return encode_frame(Event.MESSAGE_RECEIVED, message.to_wire())

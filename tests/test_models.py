"""Tests for data models."""

import dataclasses

import pytest

from clipshare.models import FileDescriptor, Message, MessageKind, SessionState


def _descriptor(mimetype: str = "image/png") -> FileDescriptor:
    return FileDescriptor(
        filename="xyz-a.png",
        original_name="a.png",
        size=1024,
        mimetype=mimetype,
        path="/uploads/xyz-a.png",
    )


class TestMessage:
    """Tests for Message model."""

    def test_create_text_message(self):
        """Test creating a text message."""
        msg = Message.text_message("hello", "2024-05-01T12:00:00.000Z")
        assert msg.kind == MessageKind.TEXT
        assert msg.text == "hello"
        assert msg.file is None

    def test_text_message_wire_shape(self):
        """Test that a text message serializes to the client shape."""
        msg = Message.text_message("hello", "2024-05-01T12:00:00.000Z")
        assert msg.to_wire() == {
            "type": "text",
            "text": "hello",
            "timestamp": "2024-05-01T12:00:00.000Z",
        }

    def test_file_message_wire_shape(self):
        """Test that a file message carries the descriptor with wire keys."""
        msg = Message.file_message(_descriptor(), "2024-05-01T12:00:00.000Z")
        assert msg.to_wire() == {
            "type": "file",
            "file": {
                "filename": "xyz-a.png",
                "originalName": "a.png",
                "size": 1024,
                "mimetype": "image/png",
                "path": "/uploads/xyz-a.png",
            },
            "timestamp": "2024-05-01T12:00:00.000Z",
        }

    def test_raw_payload_wins_over_fields(self):
        raw = {"type": "text", "text": "hello", "timestamp": "t", "id": "abc"}
        msg = dataclasses.replace(Message.text_message("hello", "t"), raw=raw)

        wire = msg.to_wire()
        wire["id"] = "mutated"

        assert msg.to_wire() == raw
        assert msg == Message.text_message("hello", "t")

    def test_message_is_immutable(self):
        """Test that messages cannot be changed after creation."""
        msg = Message.text_message("hello", "2024-05-01T12:00:00.000Z")
        with pytest.raises(dataclasses.FrozenInstanceError):
            msg.text = "changed"  # type: ignore[misc]


class TestFileDescriptor:
    """Tests for FileDescriptor model."""

    def test_image_detection(self):
        assert _descriptor("image/png").is_image
        assert _descriptor("image/jpeg").is_image
        assert not _descriptor("application/pdf").is_image


class TestSessionState:
    """Tests for SessionState enum."""

    def test_values(self):
        assert SessionState.JOINING == "joining"
        assert SessionState.SYNCED == "synced"
        assert SessionState.CLOSED == "closed"

"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

TIMESTAMP = "2024-05-01T12:00:00.000Z"


class FakeTransport:
    """Records frames written by a Session."""

    def __init__(self):
        self.frames: list[str] = []
        self.close_codes: list[int] = []

    async def send_text(self, data: str) -> None:
        self.frames.append(data)

    async def close(self, code: int = 1000) -> None:
        self.close_codes.append(code)

    @property
    def events(self) -> list[tuple[str, object]]:
        decoded = [json.loads(frame) for frame in self.frames]
        return [(frame["event"], frame["data"]) for frame in decoded]


class FailingTransport(FakeTransport):
    """Transport whose writes always fail."""

    async def send_text(self, data: str) -> None:
        raise ConnectionResetError("peer went away")


def text_payload(text: str, timestamp: str = TIMESTAMP) -> dict:
    return {"type": "text", "text": text, "timestamp": timestamp}


def file_payload(
    original_name: str = "a.png",
    size: int = 1024,
    mimetype: str = "image/png",
    timestamp: str = TIMESTAMP,
) -> dict:
    return {
        "type": "file",
        "file": {
            "filename": f"xyz-{original_name}",
            "originalName": original_name,
            "size": size,
            "mimetype": mimetype,
            "path": f"/uploads/xyz-{original_name}",
        },
        "timestamp": timestamp,
    }


@pytest.fixture
def store():
    """Create an empty message store."""
    from clipshare.store import MessageStore

    return MessageStore()


@pytest.fixture
def hub(store):
    """Create BroadcastHub over the store."""
    from clipshare.hub import BroadcastHub

    return BroadcastHub(store)


@pytest.fixture
def make_session():
    """Factory for started sessions backed by a FakeTransport."""
    from clipshare.hub import Session

    def _make(transport: FakeTransport | None = None, max_pending: int = 100):
        transport = transport or FakeTransport()
        session = Session(transport, max_pending=max_pending)
        session.start()
        return session, transport

    return _make


@pytest.fixture
def application(tmp_path):
    """Create Application with uploads under a temp dir."""
    from clipshare.app import Application

    return Application(uploads_dir=tmp_path / "uploads")


@pytest.fixture
def api_client(application):
    """Started FastAPI TestClient sharing one event loop across sockets."""
    from fastapi.testclient import TestClient

    from clipshare.api import create_fastapi_app

    with TestClient(create_fastapi_app(application)) as client:
        yield client

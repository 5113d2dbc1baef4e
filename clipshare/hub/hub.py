"""BroadcastHub: shared history plus fan-out to connected sessions."""

from typing import Any

from ..config import DEFAULT_MAX_PAYLOAD_BYTES
from ..logging_config import get_logger
from ..models import Message
from ..protocol import InvalidMessageError, encode_broadcast, encode_snapshot, parse_message
from ..store import IMessageStore
from .session import Session

logger = get_logger(__name__)

# WebSocket close codes
CLOSE_GOING_AWAY = 1001
CLOSE_POLICY_VIOLATION = 1008
CLOSE_MESSAGE_TOO_BIG = 1009


class SnapshotTooLargeError(RuntimeError):
    """The encoded history does not fit in a single frame."""


class BroadcastHub:
    """
    Connects sessions to the message store.

    All public methods are synchronous. On a single event loop this makes
    register-and-snapshot and append-and-fan-out atomic with respect to
    every other connection: nothing can run between the two halves.
    """

    def __init__(
        self,
        store: IMessageStore,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ):
        self._store = store
        self._max_payload_bytes = max_payload_bytes
        self._sessions: dict[str, Session] = {}

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    @property
    def history_length(self) -> int:
        return len(self._store)

    def connect(self, session: Session) -> None:
        """Register a session and queue the current history as its first frame."""
        self._sessions[session.id] = session
        frame = encode_snapshot(self._store.snapshot())

        if len(frame.encode("utf-8")) > self._max_payload_bytes:
            del self._sessions[session.id]
            raise SnapshotTooLargeError(
                f"Snapshot of {len(self._store)} messages exceeds "
                f"{self._max_payload_bytes} bytes"
            )

        session.enqueue(frame)
        logger.info(
            "Client connected",
            extra={
                "context": {
                    "session_id": session.id,
                    "sessions": len(self._sessions),
                    "history": len(self._store),
                }
            },
        )

    def handle_message(self, session: Session, payload: Any) -> Message | None:
        """
        Validate, append and broadcast a message sent by a session.

        Malformed payloads are logged and dropped; the sender is not told.

        Returns:
            The appended Message, or None if the payload was dropped.
        """
        try:
            message = parse_message(payload)
        except InvalidMessageError as e:
            logger.warning(
                "Dropped malformed message",
                extra={"context": {"session_id": session.id, "error": str(e)}},
            )
            return None

        index = self._store.append(message)
        self._broadcast(encode_broadcast(message))

        logger.info(
            "Message received",
            extra={
                "context": {
                    "session_id": session.id,
                    "index": index,
                    "kind": message.kind.value,
                    "targets": len(self._sessions),
                }
            },
        )
        return message

    def disconnect(self, session: Session) -> None:
        """Deregister a session. Safe to call more than once."""
        if self._sessions.pop(session.id, None) is not None:
            logger.info(
                "Client disconnected",
                extra={
                    "context": {
                        "session_id": session.id,
                        "sessions": len(self._sessions),
                    }
                },
            )
        session.close()

    def close_all(self) -> None:
        """Close every session, e.g. on shutdown."""
        for session in list(self._sessions.values()):
            self._sessions.pop(session.id, None)
            session.close(code=CLOSE_GOING_AWAY)

    def _broadcast(self, frame: str) -> None:
        for session in list(self._sessions.values()):
            if session.enqueue(frame):
                continue
            if session.closed:
                self._sessions.pop(session.id, None)
                continue
            # Dropping one frame would leave a gap, so the session goes instead
            logger.warning(
                "Evicting slow session",
                extra={
                    "context": {
                        "session_id": session.id,
                        "pending": session.pending,
                    }
                },
            )
            self._sessions.pop(session.id, None)
            session.close(code=CLOSE_POLICY_VIOLATION)

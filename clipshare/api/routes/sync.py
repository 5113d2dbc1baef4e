"""WebSocket sync channel route."""

from fastapi import APIRouter, WebSocket

from ...app import IApplication
from ...hub import Session, SnapshotTooLargeError
from ...hub.hub import CLOSE_MESSAGE_TOO_BIG
from ...logging_config import get_logger
from ...protocol import Event, ProtocolError, decode_frame

logger = get_logger(__name__)


def create_sync_router(app: IApplication) -> APIRouter:
    """Create sync router."""
    router = APIRouter(tags=["sync"])

    @router.websocket("/ws")
    async def sync_socket(websocket: WebSocket) -> None:
        """Join the hub: receive history, then live messages; send new ones."""
        await websocket.accept()
        hub = app.hub
        session = Session(websocket, max_pending=app.max_pending_frames)

        try:
            hub.connect(session)
        except SnapshotTooLargeError as e:
            logger.error(
                "Snapshot delivery failed: %s",
                e,
                extra={"context": {"session_id": session.id}},
            )
            await websocket.close(code=CLOSE_MESSAGE_TOO_BIG)
            return

        session.start()
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break

                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                try:
                    event, data = decode_frame(raw)
                except ProtocolError as e:
                    logger.warning(
                        "Ignored frame: %s",
                        e,
                        extra={"context": {"session_id": session.id}},
                    )
                    continue

                if event == Event.NEW_MESSAGE:
                    hub.handle_message(session, data)
                else:
                    logger.warning(
                        "Ignored unknown event %s",
                        event,
                        extra={"context": {"session_id": session.id}},
                    )
        finally:
            hub.disconnect(session)
            await session.wait_closed()

    return router

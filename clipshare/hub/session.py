"""Per-connection session with an ordered outbound queue."""

import asyncio
import uuid
from typing import Protocol

from ..config import DEFAULT_MAX_PENDING_FRAMES
from ..logging_config import get_logger
from ..models import SessionState

logger = get_logger(__name__)


class ISessionTransport(Protocol):
    """The subset of a WebSocket connection a session writes to."""

    async def send_text(self, data: str) -> None:
        """Write one text frame."""
        ...

    async def close(self, code: int = 1000) -> None:
        """Close the connection with a WebSocket close code."""
        ...


class Session:
    """
    One live connection registered with the hub.

    Frames are queued synchronously by the hub and written by a single
    writer task, so the wire order is the enqueue order. The snapshot is
    always the first frame queued; once it has been written the session
    moves from JOINING to SYNCED.
    """

    def __init__(
        self,
        transport: ISessionTransport,
        max_pending: int = DEFAULT_MAX_PENDING_FRAMES,
    ):
        self.id = uuid.uuid4().hex[:12]
        self.state = SessionState.JOINING
        self._transport = transport
        self._max_pending = max_pending
        self._outbox: asyncio.Queue[str | None] = asyncio.Queue()
        self._close_code: int | None = None
        self._writer: asyncio.Task | None = None

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    @property
    def pending(self) -> int:
        """Frames queued but not yet written."""
        return self._outbox.qsize()

    def start(self) -> asyncio.Task:
        """Start the writer task. Idempotent."""
        if self._writer is None:
            self._writer = asyncio.create_task(
                self._write_loop(), name=f"session-writer-{self.id}"
            )
        return self._writer

    def enqueue(self, frame: str) -> bool:
        """Queue a frame. Return False if the session is closed or saturated."""
        if self.closed or self._outbox.qsize() >= self._max_pending:
            return False
        self._outbox.put_nowait(frame)
        return True

    def close(self, code: int | None = None) -> None:
        """
        Stop delivering frames and end the writer.

        Args:
            code: WebSocket close code to send. None when the peer has
                  already gone away and there is nothing left to close.
        """
        if self.closed:
            return
        self.state = SessionState.CLOSED
        self._close_code = code
        self._discard_pending()
        if self._writer is not None and not self._writer.done():
            self._outbox.put_nowait(None)

    async def drain(self) -> None:
        """Wait until every queued frame has been handled."""
        await self._outbox.join()

    async def wait_closed(self) -> None:
        """Wait for the writer task to finish."""
        if self._writer is not None:
            await self._writer

    def _discard_pending(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    async def _write_loop(self) -> None:
        try:
            while True:
                frame = await self._outbox.get()
                try:
                    if frame is None:
                        break
                    await self._transport.send_text(frame)
                    if self.state is SessionState.JOINING:
                        self.state = SessionState.SYNCED
                        logger.debug(
                            "Session synced",
                            extra={"context": {"session_id": self.id}},
                        )
                finally:
                    self._outbox.task_done()
        except Exception as e:
            logger.warning(
                "Session write failed: %s",
                e,
                extra={"context": {"session_id": self.id, "state": self.state.value}},
            )
            self.state = SessionState.CLOSED
            self._discard_pending()
            await self._close_transport(1011)
            return

        if self._close_code is not None:
            await self._close_transport(self._close_code)

    async def _close_transport(self, code: int) -> None:
        try:
            await self._transport.close(code)
        except Exception as e:
            logger.debug(
                "Transport already closed: %s",
                e,
                extra={"context": {"session_id": self.id, "code": code}},
            )

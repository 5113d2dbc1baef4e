"""Client agent: syncs a MessageFeed with the hub and submits messages."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterable, BinaryIO, Callable, Protocol

import httpx
import websockets
from websockets.exceptions import WebSocketException

from ..config import DEFAULT_MAX_PAYLOAD_BYTES
from ..logging_config import get_logger
from ..models import FileDescriptor, Message
from ..protocol import (
    Event,
    FileDescriptorPayload,
    InvalidMessageError,
    ProtocolError,
    decode_frame,
    encode_frame,
    parse_message,
)
from .feed import MessageFeed

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]
StatusCallback = Callable[[bool], None]


class UploadError(RuntimeError):
    """A file could not be uploaded; nothing was sent to the hub."""


class NotConnectedError(RuntimeError):
    """The agent has no live connection to the hub."""


class IConnection(Protocol):
    """The subset of a websockets client connection the agent uses."""

    async def send(self, message: str) -> None:
        ...


def iso_now() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


def websocket_url(server_url: str) -> str:
    """Map http(s)://host to ws(s)://host/ws."""
    base = server_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    return f"{base}/ws"


class _ProgressReader:
    """File wrapper reporting bytes read as the multipart body is streamed."""

    def __init__(self, file: BinaryIO, total: int, callback: ProgressCallback):
        self._file = file
        self._total = total
        self._callback = callback
        self._sent = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._file.read(size)
        if chunk:
            self._sent += len(chunk)
            self._callback(self._sent, self._total)
        return chunk

    def seek(self, offset: int, whence: int = 0) -> int:
        position = self._file.seek(offset, whence)
        if position == 0:
            self._sent = 0
        return position

    def tell(self) -> int:
        return self._file.tell()

    def fileno(self) -> int:
        return self._file.fileno()


class ClipboardClient:
    """
    Keeps a MessageFeed in sync with the hub.

    The snapshot received on every (re)connect replaces the feed, and each
    broadcast is inserted at the top. The hub delivers every message exactly
    once per connection, so no deduplication is done here.
    """

    def __init__(
        self,
        server_url: str,
        feed: MessageFeed | None = None,
        http_client: httpx.AsyncClient | None = None,
        reconnect_delay: float = 2.0,
        max_frame_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
        on_status: StatusCallback | None = None,
    ):
        self._server_url = server_url.rstrip("/")
        self.feed = feed if feed is not None else MessageFeed(base_url=self._server_url)
        self._http = http_client
        self._owns_http = http_client is None
        self._reconnect_delay = reconnect_delay
        self._max_frame_bytes = max_frame_bytes
        self._on_status = on_status

        self._ws: IConnection | None = None
        self._connected = asyncio.Event()
        self._running = False
        self._task: asyncio.Task | None = None

        # (sent, total) while an upload is in flight, else None
        self.upload_progress: tuple[int, int] | None = None

    @property
    def ws_url(self) -> str:
        return websocket_url(self._server_url)

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def start(self) -> None:
        """Connect in the background, reconnecting after connection loss."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Disconnect and release the HTTP client."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._http and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def wait_connected(self, timeout: float | None = None) -> None:
        await asyncio.wait_for(self._connected.wait(), timeout=timeout)

    async def _run(self) -> None:
        while self._running:
            try:
                async with websockets.connect(
                    self.ws_url, max_size=self._max_frame_bytes
                ) as ws:
                    self.attach(ws)
                    await self._consume(ws)
            except (OSError, WebSocketException) as e:
                logger.warning("Connection to %s lost: %s", self.ws_url, e)
            finally:
                self.detach()

            if self._running:
                await asyncio.sleep(self._reconnect_delay)

    async def _consume(self, frames: AsyncIterable[str | bytes]) -> None:
        """Apply frames until the connection ends; a failing frame is skipped."""
        async for raw in frames:
            try:
                self.handle_frame(raw)
            except Exception as e:
                logger.error("Failed to apply frame from hub: %s", e, exc_info=True)

    def attach(self, connection: IConnection) -> None:
        """Use a freshly opened connection; the hub will send a snapshot next."""
        self._ws = connection
        self._connected.set()
        logger.info("Connected to %s", self.ws_url)
        if self._on_status:
            self._on_status(True)

    def detach(self) -> None:
        if self._ws is None:
            return
        self._ws = None
        self._connected.clear()
        logger.info("Disconnected from %s", self.ws_url)
        if self._on_status:
            self._on_status(False)

    def handle_frame(self, raw: str | bytes) -> None:
        """Apply one server frame to the feed."""
        try:
            event, data = decode_frame(raw)
        except ProtocolError as e:
            logger.warning("Ignored frame from hub: %s", e)
            return

        if event == Event.INITIAL_MESSAGES:
            if not isinstance(data, list):
                logger.warning("Ignored snapshot that is not a list")
                return
            messages = [m for m in (self._parse(item) for item in data) if m]
            self.feed.load_initial(messages)
        elif event == Event.MESSAGE_RECEIVED:
            message = self._parse(data)
            if message:
                self.feed.receive(message)
        else:
            logger.debug("Ignored event %s", event)

    def _parse(self, data: Any) -> Message | None:
        try:
            return parse_message(data)
        except InvalidMessageError as e:
            logger.warning("Ignored malformed message from hub: %s", e)
            return None

    async def send_text(self, text: str) -> Message | None:
        """
        Send a text message.

        Whitespace-only input is not sent. The caller can clear its input as
        soon as this returns; the message shows up in the feed when the hub
        broadcasts it back.

        Returns:
            The sent Message, or None if there was nothing to send.
        """
        trimmed = text.strip()
        if not trimmed:
            return None

        message = Message.text_message(trimmed, iso_now())
        await self._emit(message)
        return message

    async def send_file(
        self, path: str | Path, on_progress: ProgressCallback | None = None
    ) -> Message:
        """
        Upload a file, then send a file message carrying its descriptor.

        Raises:
            NotConnectedError: no connection to the hub.
            UploadError: the upload failed; nothing was sent.
        """
        if not self.connected:
            raise NotConnectedError("Not connected to hub")

        descriptor = await self.upload(path, on_progress=on_progress)
        message = Message.file_message(descriptor, iso_now())
        await self._emit(message)
        return message

    async def upload(
        self, path: str | Path, on_progress: ProgressCallback | None = None
    ) -> FileDescriptor:
        """POST a file to /upload and return the stored file's descriptor."""
        path = Path(path)

        def report(sent: int, total: int) -> None:
            self.upload_progress = (sent, total)
            if on_progress:
                on_progress(sent, total)

        try:
            total = path.stat().st_size
            self.upload_progress = (0, total)
            with path.open("rb") as fh:
                response = await self._http_client().post(
                    f"{self._server_url}/upload",
                    files={"file": (path.name, _ProgressReader(fh, total, report))},
                    timeout=None,
                )
        except (OSError, httpx.HTTPError) as e:
            raise UploadError(f"Upload of {path.name} failed: {e}") from e
        finally:
            self.upload_progress = None

        if response.status_code != 200:
            raise UploadError(
                f"Upload of {path.name} failed ({response.status_code}): "
                f"{_error_detail(response)}"
            )

        try:
            payload = FileDescriptorPayload.model_validate(response.json())
        except ValueError as e:
            raise UploadError(f"Upload of {path.name} returned a bad descriptor") from e

        logger.info("Uploaded %s as %s", path.name, payload.filename)
        return payload.to_descriptor()

    async def _emit(self, message: Message) -> None:
        if self._ws is None:
            raise NotConnectedError("Not connected to hub")
        await self._ws.send(encode_frame(Event.NEW_MESSAGE, message.to_wire()))

    def _http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
            self._owns_http = True
        return self._http


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and "error" in body:
        return str(body["error"])
    return str(body)[:200]

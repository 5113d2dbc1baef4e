"""Console front end for the clipboard client."""

import asyncio
import sys
from typing import TextIO

from ..models import Message, MessageKind
from .agent import ClipboardClient, NotConnectedError, UploadError
from .feed import MessageFeed, render_card

HELP = "Type text and press Enter to share it. /file PATH uploads a file, /quit exits."


class ConsoleView:
    """Prints feed changes and status to a text stream."""

    def __init__(self, base_url: str, out: TextIO = sys.stdout):
        self._base_url = base_url
        self._out = out

    def show_message(self, message: Message) -> None:
        card = render_card(message, self._base_url)
        if card.kind is MessageKind.TEXT:
            self._write(f"[{card.time_label}] {card.text}")
            return
        line = f"[{card.time_label}] {card.file_name} ({card.size_label}) {card.download_url}"
        if card.preview_url:
            line += " [image]"
        self._write(line)

    def show_reset(self) -> None:
        self._write("--- history ---")

    def show_status(self, connected: bool) -> None:
        self._write("* Connected" if connected else "* Disconnected")

    def show_progress(self, sent: int, total: int) -> None:
        percent = round(sent * 100 / total) if total else 100
        self._out.write(f"\r  uploading {percent}%")
        if sent >= total:
            self._out.write("\n")
        self._out.flush()

    def show_error(self, error: Exception) -> None:
        self._write(f"! {error}")

    def _write(self, line: str) -> None:
        self._out.write(line + "\n")
        self._out.flush()


async def handle_line(client: ClipboardClient, view: ConsoleView, line: str) -> bool:
    """Run one input line. Return False when the user asked to quit."""
    command = line.strip()
    if command == "/quit":
        return False

    if command == "/file":
        view.show_error(ValueError("Usage: /file PATH"))
        return True

    try:
        if command.startswith("/file "):
            await client.send_file(command[len("/file "):].strip(), on_progress=view.show_progress)
        else:
            await client.send_text(line)
    except (NotConnectedError, UploadError) as e:
        view.show_error(e)
    return True


async def _stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return reader


async def run_console(server_url: str) -> None:
    """Connect to a hub and share lines typed on stdin until EOF or /quit."""
    view = ConsoleView(server_url)
    feed = MessageFeed(
        base_url=server_url, on_insert=view.show_message, on_reset=view.show_reset
    )
    client = ClipboardClient(server_url, feed=feed, on_status=view.show_status)

    print(HELP)
    await client.start()
    try:
        reader = await _stdin_reader()
        while True:
            raw = await reader.readline()
            if not raw:
                break
            if not await handle_line(client, view, raw.decode("utf-8").rstrip("\n")):
                break
    finally:
        await client.stop()

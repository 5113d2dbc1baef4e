"""Application bootstrap and lifecycle management."""

import os
from pathlib import Path
from typing import Protocol

from .config import (
    DEFAULT_MAX_PAYLOAD_BYTES,
    DEFAULT_MAX_PENDING_FRAMES,
    DEFAULT_MAX_UPLOAD_BYTES,
    env_int,
    resolve_uploads_dir,
)
from .hub import BroadcastHub
from .logging_config import get_logger
from .store import IMessageStore, MessageStore
from .uploads import UploadStore

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    max_pending_frames: int

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    @property
    def hub(self) -> BroadcastHub: ...

    @property
    def uploads(self) -> UploadStore: ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        uploads_dir: str | Path | None = None,
        max_upload_bytes: int | None = None,
        max_payload_bytes: int | None = None,
        max_pending_frames: int | None = None,
    ):
        env_uploads_dir = (
            os.getenv("CLIPSHARE_UPLOADS_DIR") if uploads_dir is None else uploads_dir
        )
        self.uploads_dir = resolve_uploads_dir(env_uploads_dir)
        self.max_upload_bytes = max_upload_bytes or env_int(
            "CLIPSHARE_MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES
        )
        self.max_payload_bytes = max_payload_bytes or env_int(
            "CLIPSHARE_MAX_PAYLOAD_BYTES", DEFAULT_MAX_PAYLOAD_BYTES
        )
        self.max_pending_frames = max_pending_frames or env_int(
            "CLIPSHARE_MAX_PENDING_FRAMES", DEFAULT_MAX_PENDING_FRAMES
        )

        # Components (will be initialized in start())
        self._store: IMessageStore | None = None
        self._hub: BroadcastHub | None = None
        self._uploads: UploadStore | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Store (no dependencies); history starts empty on every start
        self._store = MessageStore()

        # 2. Hub (depends on Store)
        self._hub = BroadcastHub(self._store, max_payload_bytes=self.max_payload_bytes)
        logger.info("BroadcastHub initialized")

        # 3. Uploads (independent of the hub)
        self._uploads = UploadStore(self.uploads_dir, max_bytes=self.max_upload_bytes)
        self._uploads.init()
        logger.info(
            "Upload store initialized",
            extra={"context": {"directory": str(self.uploads_dir)}},
        )

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._hub:
            self._hub.close_all()
            logger.info("All sessions closed")
        logger.info("Application stopped")

    @property
    def store(self) -> IMessageStore:
        """Get message store instance."""
        if self._store is None:
            raise RuntimeError("Application not started")
        return self._store

    @property
    def hub(self) -> BroadcastHub:
        """Get broadcast hub instance."""
        if self._hub is None:
            raise RuntimeError("Application not started")
        return self._hub

    @property
    def uploads(self) -> UploadStore:
        """Get upload store instance."""
        if self._uploads is None:
            raise RuntimeError("Application not started")
        return self._uploads

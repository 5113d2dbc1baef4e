"""Disk-backed upload store for file messages."""

import asyncio
import random
import time
from pathlib import Path
from urllib.parse import quote

from fastapi import UploadFile

from ..config import DEFAULT_MAX_UPLOAD_BYTES
from ..logging_config import get_logger
from ..models import FileDescriptor

logger = get_logger(__name__)

DEFAULT_MIMETYPE = "application/octet-stream"


class UploadTooLargeError(ValueError):
    """The upload exceeded the configured size limit."""


class UploadStore:
    """Writes uploaded files to a directory and describes them."""

    CHUNK_SIZE = 1024 * 1024

    def __init__(
        self,
        directory: Path,
        max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        url_prefix: str = "/uploads",
    ):
        self._directory = Path(directory)
        self._max_bytes = max_bytes
        self._url_prefix = url_prefix.rstrip("/")

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def init(self) -> None:
        """Create the uploads directory if it doesn't exist."""
        self._directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def storage_name(original_name: str) -> str:
        """Unique on-disk name: <epoch-ms>-<random>-<basename>."""
        basename = Path(original_name.replace("\\", "/")).name or "upload"
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}-{basename}"

    async def save(self, upload: UploadFile) -> FileDescriptor:
        """
        Stream an upload to disk.

        Raises:
            UploadTooLargeError: more than max_bytes were received. The
                partial file is removed.
        """
        original_name = upload.filename or "upload"
        filename = self.storage_name(original_name)
        target = self._directory / filename
        size = 0

        # File I/O stays off the event loop
        out = await asyncio.to_thread(target.open, "wb")
        try:
            try:
                while chunk := await upload.read(self.CHUNK_SIZE):
                    size += len(chunk)
                    if size > self._max_bytes:
                        raise UploadTooLargeError(
                            f"{original_name} exceeds {self._max_bytes} bytes"
                        )
                    await asyncio.to_thread(out.write, chunk)
            finally:
                await asyncio.to_thread(out.close)
        except Exception:
            await asyncio.to_thread(target.unlink, missing_ok=True)
            raise

        descriptor = FileDescriptor(
            filename=filename,
            original_name=original_name,
            size=size,
            mimetype=upload.content_type or DEFAULT_MIMETYPE,
            path=f"{self._url_prefix}/{quote(filename)}",
        )
        logger.info(
            "File uploaded",
            extra={
                "context": {
                    "filename": filename,
                    "size": size,
                    "mimetype": descriptor.mimetype,
                }
            },
        )
        return descriptor

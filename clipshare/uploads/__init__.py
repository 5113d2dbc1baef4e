"""Upload store module."""

from .uploads import UploadStore, UploadTooLargeError

__all__ = ["UploadStore", "UploadTooLargeError"]

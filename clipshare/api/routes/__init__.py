"""API route factories."""

from .health import create_health_router
from .sync import create_sync_router
from .uploads import create_uploads_router

__all__ = ["create_health_router", "create_sync_router", "create_uploads_router"]

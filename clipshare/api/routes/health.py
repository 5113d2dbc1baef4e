"""Health API routes."""

from pydantic import BaseModel
from fastapi import APIRouter

from ...app import IApplication


class HealthResponse(BaseModel):
    """Response model for health."""

    status: str
    sessions: int
    messages: int


def create_health_router(app: IApplication) -> APIRouter:
    """Create health router."""
    router = APIRouter(prefix="/api", tags=["health"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> dict:
        """Report live session count and history length."""
        hub = app.hub
        return {
            "status": "ok",
            "sessions": hub.session_count,
            "messages": hub.history_length,
        }

    return router

"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ..app import Application
from ..config import cors_origins
from .routes import create_health_router, create_sync_router, create_uploads_router


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Manage application lifespan."""
    application: Application = fastapi_app.state.application
    await application.start()
    yield
    await application.stop()


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    if application is None:
        application = get_app()

    fastapi_app = FastAPI(
        title="ClipShare API",
        description="Real-time shared clipboard hub",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(create_sync_router(application))
    fastapi_app.include_router(create_uploads_router(application))
    fastapi_app.include_router(create_health_router(application))

    # Directory is created by Application.start()
    fastapi_app.mount(
        "/uploads",
        StaticFiles(directory=application.uploads_dir, check_dir=False),
        name="uploads",
    )

    return fastapi_app

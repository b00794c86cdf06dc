# server/web/app/main.py
import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import async_sessionmaker

from server.web.app.config import Settings, get_settings
from server.web.app.db import create_engine, create_session_factory
from server.web.app.errors import register_error_handlers
from server.web.app.services.logging_service import LoggingMiddleware, configure_logging
from server.web.app.services.upload_service import UploadService
from server.web.app.services.video_s3_service import VideoS3Service

# Import API routes
from server.web.app.api import upload, videos, video_likes, video_comments, webhooks

logger = logging.getLogger(__name__)


async def reap_once(app: FastAPI) -> int:
    settings: Settings = app.state.settings
    async with app.state.session_factory() as db:
        service = UploadService(db, app.state.storage)
        return await service.reap_abandoned_uploads(
            timedelta(hours=settings.PENDING_UPLOAD_TTL_HOURS)
        )


async def run_upload_reaper(app: FastAPI, interval_seconds: float) -> None:
    """Periodically reap pending uploads that were never committed."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await reap_once(app)
        except Exception:
            logger.exception("Upload reaper run failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    await reap_once(app)

    reaper_task = None
    if settings.UPLOAD_REAPER_INTERVAL_MINUTES > 0:
        reaper_task = asyncio.create_task(
            run_upload_reaper(app, settings.UPLOAD_REAPER_INTERVAL_MINUTES * 60)
        )
    logger.info("%s %s started", settings.APP_NAME, settings.VERSION)
    try:
        yield
    finally:
        if reaper_task is not None:
            reaper_task.cancel()
            with suppress(asyncio.CancelledError):
                await reaper_task
        if app.state.owns_engine:
            await app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[VideoS3Service] = None,
    session_factory: Optional[async_sessionmaker] = None,
) -> FastAPI:
    """
    Build the application.

    Storage and the session factory default to ones built from settings;
    tests pass their own.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Video sharing with direct-to-storage uploads, likes and threaded comments.",
        version=settings.VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage = storage or VideoS3Service.from_settings(settings)
    app.state.owns_engine = session_factory is None
    if session_factory is None:
        app.state.engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        session_factory = create_session_factory(app.state.engine)
    app.state.session_factory = session_factory

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.DEBUG else [f"https://{settings.DOMAIN}"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    register_error_handlers(app)

    # API routes
    app.include_router(upload.router, prefix="/api")
    app.include_router(videos.router, prefix="/api")
    app.include_router(video_likes.router, prefix="/api")
    app.include_router(video_comments.router, prefix="/api")
    app.include_router(webhooks.router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "web", "version": settings.VERSION}

    return app

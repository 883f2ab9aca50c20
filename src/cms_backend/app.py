"""Application factory for the content management API."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from .config import PROJECT_ROOT, get_settings, resolve_under
from .error_handlers import install_error_handlers
from .repository import ContentRepository
from .routers.analytics import router as analytics_router
from .routers.articles import router as articles_router
from .routers.auth import router as auth_router
from .routers.auth import setup_router
from .routers.categories import router as categories_router
from .routers.contact import router as contact_router
from .routers.media import router as media_router
from .routers.projects import router as projects_router
from .routers.service_catalog import router as services_router
from .routers.settings import router as settings_router
from .routers.team import router as team_router
from .services.analytics import AnalyticsService
from .services.articles import ArticleService
from .services.auth import AuthService
from .services.categories import CategoryService
from .services.contact import ContactService
from .services.images import ImageProcessor
from .services.media import MediaService
from .services.projects import ProjectService
from .services.service_catalog import ServiceCatalog
from .services.site_settings import SiteSettingsService
from .services.team import TeamService
from .services.uploads import UploadService, cleanup_stale_uploads

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
UPLOADS_URL_PREFIX = "/uploads"


def _configure_logging() -> None:
    """Configure logging from the LOG_LEVEL and LOG_FILE environment variables."""
    load_dotenv()

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers: list[logging.Handler] = []
    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger("cms_backend").setLevel(log_level)
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(log_level)

    # PIL logs every plugin import at DEBUG
    if log_level <= logging.DEBUG:
        logging.getLogger("PIL").setLevel(logging.INFO)


def create_app() -> FastAPI:
    _configure_logging()
    logger = logging.getLogger("cms_backend.app")

    settings = get_settings()

    database_path = resolve_under(PROJECT_ROOT, settings.database_path)
    upload_dir = resolve_under(PROJECT_ROOT, settings.upload_dir)
    staging_dir = resolve_under(PROJECT_ROOT, settings.upload_staging_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    staging_dir.mkdir(parents=True, exist_ok=True)

    repository = ContentRepository(database_path)
    uploads = UploadService(staging_dir, max_size_bytes=settings.upload_max_size_bytes)
    images = ImageProcessor(
        upload_dir,
        default_profile=settings.image_profile,
        public_prefix=UPLOADS_URL_PREFIX,
    )
    auth_service = AuthService(repository, token_ttl_hours=settings.auth_token_ttl_hours)

    cleanup_interval_seconds = 3600
    cleanup_task: asyncio.Task | None = None

    async def _housekeeping() -> None:
        await asyncio.to_thread(
            cleanup_stale_uploads,
            staging_dir,
            max_age_hours=settings.upload_staging_max_age_hours,
        )
        await auth_service.purge_expired_tokens()

    async def _housekeeping_loop() -> None:
        while True:
            await asyncio.sleep(cleanup_interval_seconds)
            try:
                await _housekeeping()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("Housekeeping run failed: %s", exc)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal cleanup_task
        await repository.initialize()
        try:
            await _housekeeping()
        except Exception as exc:
            logger.warning("Initial housekeeping failed: %s", exc)
        cleanup_task = asyncio.create_task(_housekeeping_loop())
        try:
            yield
        finally:
            if cleanup_task is not None:
                cleanup_task.cancel()
                with suppress(asyncio.CancelledError):
                    await cleanup_task
            await repository.close()

    app = FastAPI(
        title="Architecture Portfolio CMS",
        version="0.1.0",
        description="Content management API for an architecture practice website.",
        lifespan=lifespan,
    )

    app.state.repository = repository
    app.state.image_processor = images
    app.state.upload_service = uploads
    app.state.auth_service = auth_service
    app.state.project_service = ProjectService(repository, images)
    app.state.article_service = ArticleService(repository, images)
    app.state.category_service = CategoryService(repository)
    app.state.team_service = TeamService(repository, images)
    app.state.service_catalog = ServiceCatalog(repository)
    app.state.media_service = MediaService(repository, images)
    app.state.site_settings_service = SiteSettingsService(repository, images)
    app.state.contact_service = ContactService(repository)
    app.state.analytics_service = AnalyticsService(repository)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1024)

    slow_request_seconds = settings.slow_request_ms / 1000

    @app.middleware("http")
    async def log_slow_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        if slow_request_seconds and elapsed > slow_request_seconds:
            logger.warning(
                "Slow request %s %s took %.0fms",
                request.method,
                request.url.path,
                elapsed * 1000,
            )
        return response

    install_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(setup_router)
    app.include_router(projects_router)
    app.include_router(articles_router)
    app.include_router(categories_router)
    app.include_router(team_router)
    app.include_router(services_router)
    app.include_router(media_router)
    app.include_router(settings_router)
    app.include_router(contact_router)
    app.include_router(analytics_router)

    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=upload_dir), name="uploads")

    @app.get("/health", tags=["health"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["create_app"]

"""Entry point for the Taskflow FastAPI application."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import api_router, health_router
from .core.cache import ProjectCache, create_cache_client
from .core.config import Settings, get_settings
from .core.jobs import JobQueueUnavailableError, Notifier, close_job_connection, get_job_queue
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .db.session import dispose_engine
from .errors import register_exception_handlers
from .notifications import close_notification_store, init_notification_store

logger = logging.getLogger("taskflow.main")


def _normalise_prefix(raw_prefix: str) -> str:
    prefix = raw_prefix.strip()
    if prefix and not prefix.startswith("/"):
        prefix = f"/{prefix}"
    prefix = prefix.rstrip("/")
    return "" if prefix == "/" else prefix


def create_app(settings: Settings | None = None) -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)

    router_prefix = _normalise_prefix(settings.api_prefix)
    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Multi-user project and task tracker.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{router_prefix}/openapi.json",
    )

    application.state.settings = settings
    application.state.cache = ProjectCache(None)
    application.state.notifier = Notifier(None, settings=settings)

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    application.include_router(api_router, prefix=router_prefix)
    application.include_router(health_router)

    register_exception_handlers(application)

    @application.on_event("startup")
    async def _initialise_side_channels() -> None:
        application.state.cache = ProjectCache(await create_cache_client(settings))
        try:
            queue = get_job_queue()
        except JobQueueUnavailableError:
            logger.warning("Notification queue unavailable; notifications will be dropped.")
            queue = None
        application.state.notifier = Notifier(queue, settings=settings)
        try:
            await init_notification_store()
        except Exception:
            logger.warning("Notification inbox unavailable.", exc_info=True)

    @application.on_event("shutdown")
    async def _dispose_side_channels() -> None:
        await close_notification_store()
        close_job_connection()
        cache = application.state.cache
        application.state.cache = ProjectCache(None)
        await cache.close()
        await dispose_engine()

    return application


def run() -> None:
    """Console entry point for ``taskflow-api``."""

    settings: Settings = get_settings()
    uvicorn.run(
        "taskflow.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )

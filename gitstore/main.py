import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gitstore.api import details, health
from gitstore.config import Settings, get_settings
from gitstore.logging_config import configure_json_logging
from gitstore.middleware.request_id import RequestIDMiddleware
from gitstore.services.commit_dates import CommitDateResolver
from gitstore.services.container import init_container, reset_container
from gitstore.services.details import DetailsService
from gitstore.services.health import HealthCheckService
from gitstore.services.upstream import ContentStoreClient
from gitstore.version import get_version

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application for the given settings."""
    settings = settings or get_settings()
    configure_json_logging(log_level=settings.log_level, use_json=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application startup and shutdown."""
        upstream_config = settings.upstream_config()
        logger.info(
            "Starting gitstore server",
            extra={
                "repository": f"{upstream_config.owner}/{upstream_config.repo}",
                "branch": upstream_config.branch,
                "max_concurrent_requests": upstream_config.max_concurrent_requests,
            },
        )

        content_store = ContentStoreClient(upstream_config)
        details_service = DetailsService(
            client=content_store,
            resolver=CommitDateResolver(content_store),
            timeout_seconds=settings.details_timeout_seconds,
        )
        health_service = HealthCheckService(client=content_store, version=get_version())

        init_container(
            content_store=content_store,
            details_service=details_service,
            health_service=health_service,
        )

        yield

        logger.info("gitstore server shutting down")
        await content_store.close()
        reset_container()

    app = FastAPI(
        title="gitstore",
        description="Details aggregation over a GitHub-backed content store",
        version=get_version(),
        lifespan=lifespan,
    )

    app.add_middleware(RequestIDMiddleware)

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allowed_origins,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["Content-Type", "X-Request-ID"],
            expose_headers=["X-Request-ID", "Retry-After"],
            max_age=3600,
        )
        logger.info(f"CORS configured for origins: {settings.cors_allowed_origins}")
    else:
        logger.warning("CORS is disabled - cross-origin requests will be blocked")

    app.include_router(details.router)
    app.include_router(health.router)

    return app


def run() -> None:
    """Console entry point: serve the application with uvicorn."""
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run("gitstore.main:create_app", factory=True, host="0.0.0.0", port=port)

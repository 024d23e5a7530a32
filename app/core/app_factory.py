"""Application factory for the FastAPI app.

Builds a fresh application (and a fresh in-memory context) per call so
tests can create isolated apps with injected limiters and storage.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.storage.base import AbstractStorage
from app.api.routes import health_router, security_router, submissions_router
from app.core.config import Settings, settings
from app.core.context import build_context
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and release the in-memory context on shutdown."""
    logger.info("app.startup", extra={"app_env": app.state.context.settings.app_env})
    yield
    app.state.context.close()
    logger.info("app.shutdown")


def create_app(
    app_settings: Settings | None = None,
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    storage: AbstractStorage | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings override; defaults to the global settings.
        rate_limiter: Optional limiter override.
        storage: Optional storage override.
        configure_logs: Whether to (re)configure the root logger.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log)

    app = FastAPI(
        title="Secure Form Demo API",
        description=(
            "Demonstration API for web-input security hygiene: form submissions "
            "are rate limited per client, stripped of HTML, validated against "
            "fixed field rules and kept in memory for display."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
        lifespan=lifespan,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.context = build_context(cfg, rate_limiter=rate_limiter, storage=storage)

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(submissions_router, prefix="/api")
    app.include_router(security_router, prefix="/api")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app

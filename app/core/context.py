"""Application context owning all process-local mutable state.

One ``AppContext`` is created per application instance and stored on
``app.state.context``. Routes and dependencies receive it through
``Depends(get_context)`` instead of reaching for module globals, so each
test app gets fresh storage and a fresh rate limiter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryRollingWindowRateLimiter
from app.adapters.storage.base import AbstractStorage
from app.adapters.storage.in_memory import InMemoryStorage
from app.core.config import Settings, settings
from app.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    rate_limiter: AbstractRateLimiter
    storage: AbstractStorage
    submissions: SubmissionService = field(init=False)

    def __post_init__(self) -> None:
        self.submissions = SubmissionService(self.storage)

    def close(self) -> None:
        """Release all in-memory state (called on application shutdown)."""
        self.rate_limiter.reset()
        self.storage.clear()


def build_context(
    app_settings: Settings | None = None,
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    storage: AbstractStorage | None = None,
) -> AppContext:
    """Create an AppContext, filling in default in-memory backends.

    Args:
        app_settings: Settings to build from; defaults to the global settings.
        rate_limiter: Optional limiter override (tests inject fixed clocks).
        storage: Optional storage override.
    """
    cfg = app_settings or settings
    if rate_limiter is None:
        rate_limiter = InMemoryRollingWindowRateLimiter(
            limit=cfg.app.rate_limit_requests,
            window_seconds=cfg.app.rate_limit_window_seconds,
        )
    ctx = AppContext(
        settings=cfg,
        rate_limiter=rate_limiter,
        storage=storage or InMemoryStorage(),
    )
    logger.debug(
        "context.created",
        extra={
            "rate_limit_requests": cfg.app.rate_limit_requests,
            "rate_limit_window_s": cfg.app.rate_limit_window_seconds,
        },
    )
    return ctx


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context bound to the running app."""
    return request.app.state.context

"""Rate limiting dependency for FastAPI routes.

Wires the limiter owned by the application context into the HTTP layer.
Clients are keyed by their remote address. The dependency runs before the
route body is executed, so throttled requests are rejected before any
sanitization or validation work happens.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Request

from app.core.context import AppContext, get_context
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."


def client_address(request: Request) -> str:
    """Return the remote address used as the rate limit key."""
    return request.client.host if request.client and request.client.host else "unknown"


def _hash_limiter_key(key: str) -> str:
    """Hash the client key so addresses never appear in logs."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def enforce_rate_limit(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_context)],
) -> None:
    """FastAPI dependency enforcing the per-client submission budget.

    Raises:
        RateLimitAppError: When the client has used up its window.
    """
    app_cfg = ctx.settings.app
    if not app_cfg.rate_limit_enabled:
        return

    key = client_address(request)
    key_hash = _hash_limiter_key(key)

    result = ctx.rate_limiter.consume(key)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        return

    retry_after = result.retry_after_seconds or 1
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "window_s": app_cfg.rate_limit_window_seconds,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if app_cfg.rate_limit_include_headers:
        headers = {
            "Retry-After": str(retry_after),
            "X-RateLimit-Limit": str(result.limit),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": str(result.reset_at),
        }

    raise RateLimitAppError(
        code="rate_limited",
        message=RATE_LIMIT_MESSAGE,
        details={
            "retry_after": retry_after,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "headers": headers,
        },
    )

"""HTTP middleware for request ID propagation and access logging.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Bind a correlation id to the request and report its duration.

    The incoming ``X-Request-ID`` header (name configurable through
    ``LOG_REQUEST_ID_HEADER``) is reused when present, otherwise a UUID4 is
    generated. The id is echoed back on the response together with
    ``X-Request-Duration-ms``, and the context is cleared afterwards so ids
    never leak between requests.
    """

    ctx = getattr(request.app.state, "context", None)
    header_name = (ctx.settings if ctx is not None else settings).log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "route": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response

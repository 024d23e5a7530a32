"""Global exception handlers for consistent error responses.

Every error body carries a human-readable ``message``; validation failures
add an ``errors`` list and throttled requests add ``retryAfter``:

- ValidationAppError / RequestValidationError -> 400
- NotFoundAppError -> 404
- RateLimitAppError -> 429 (+ Retry-After / X-RateLimit-* headers)
- unexpected Exception -> 500 with a generic message

The request id is returned in the ``X-Request-ID`` response header by the
middleware and included in every log line, never in the body.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    NotFoundAppError,
    RateLimitAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"
VALIDATION_FAILED_MESSAGE = "Validation failed"


def _status_for(exc: AppError) -> int:
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, NotFoundAppError):
        return 404
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors with the status code implied by their type."""
    status_code = _status_for(exc)
    details = exc.details or {}

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    content: dict[str, Any] = {"message": exc.message}
    headers: dict[str, str] | None = None

    if isinstance(exc, ValidationAppError):
        content["errors"] = details.get("errors", [])
    elif isinstance(exc, RateLimitAppError):
        content["retryAfter"] = details.get("retry_after", 1)
        headers = details.get("headers") or None

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI's request parsing errors onto the 400 validation shape.

    Only named parts of ``loc`` form the field; a JSON decode error reports
    a character offset there, which is not a field, so it maps to ``body``.
    """
    errors = []
    for error in exc.errors():
        loc = [part for part in error.get("loc", ()) if isinstance(part, str) and part != "body"]
        errors.append({"field": ".".join(loc) or "body", "message": str(error.get("msg", "Invalid value"))})

    logger.info(
        "request_validation_failed",
        extra={"error_count": len(errors), "request_path": request.url.path},
    )
    return JSONResponse(
        status_code=400,
        content={"message": VALIDATION_FAILED_MESSAGE, "errors": errors},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for operators and returns a generic message so no
    implementation details reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(status_code=500, content={"message": INTERNAL_ERROR_MESSAGE})


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)

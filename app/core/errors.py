"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NotRequired, TypedDict


class FieldError(TypedDict):
    """A single per-field validation failure."""

    field: str
    message: str


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional; each error type uses the subset relevant to it.
    """

    errors: list[FieldError]
    retry_after: int
    limit: int
    remaining: int
    reset_at: int
    resource: str
    resource_id: int
    headers: NotRequired[dict[str, str]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when submitted data fails sanitization-time or rule validation."""


class RateLimitAppError(AppError):
    """Raised when a client exceeds its submission budget."""


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

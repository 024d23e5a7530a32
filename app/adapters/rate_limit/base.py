"""Rate limiter interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single ``consume`` call.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the caller's window expires.
        retry_after_seconds: Seconds to wait before retrying; None when allowed.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for per-key rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it is allowed.

        Args:
            key: Client identifier (e.g., IP address).

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Drop all tracked state."""
        raise NotImplementedError

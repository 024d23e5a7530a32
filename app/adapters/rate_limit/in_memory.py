"""In-memory rolling-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit,
  and all state is lost on restart.
- Each key gets its own window that opens on its first request, rather than
  windows aligned to wall-clock boundaries.
- Expired entries are swept on every call with a full scan, which is fine
  for a demo-sized key space.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


class InMemoryRollingWindowRateLimiter(AbstractRateLimiter):
    """Allow ``limit`` requests per key within ``window_seconds`` of its first one.

    Per-key lifecycle: no entry -> counting (count < limit) -> blocked
    (count >= limit) -> expired once ``now > reset_at``, at which point the
    next request starts a fresh window with count 1. Blocked requests are
    not counted.
    """

    def __init__(
        self,
        *,
        limit: int = 5,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum number of requests per window.
            window_seconds: Window length in seconds.
            clock: Time source returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, RateLimitEntry] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_entry(self, key: str) -> RateLimitEntry | None:
        """Return a copy of the tracked entry for ``key`` (for inspection)."""
        with self._lock:
            entry = self._entries.get(key)
            return None if entry is None else RateLimitEntry(entry.count, entry.reset_at)

    def sweep(self, now: float | None = None) -> int:
        """Delete every entry whose window has expired.

        Returns:
            Number of entries removed.
        """
        now = self._clock() if now is None else now
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("rate_limit.swept", extra={"removed": len(expired)})
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def consume(self, key: str) -> RateLimitResult:
        """Count one request for ``key``.

        Args:
            key: Client identifier (e.g., IP address).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        with self._lock:
            self.sweep(now)

            entry = self._entries.get(key)
            if entry is None:
                entry = RateLimitEntry(count=1, reset_at=now + self._window_seconds)
                self._entries[key] = entry
                return self._allowed(entry)

            if entry.count >= self._limit:
                return self._blocked(entry, now)

            entry.count += 1
            return self._allowed(entry)

    def _allowed(self, entry: RateLimitEntry) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - entry.count),
            reset_at=int(math.ceil(entry.reset_at)),
            retry_after_seconds=None,
        )

    def _blocked(self, entry: RateLimitEntry, now: float) -> RateLimitResult:
        # At exactly reset_at the window is still open; never advertise 0s
        retry_after = min(self._window_seconds, max(1, int(math.ceil(entry.reset_at - now))))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(math.ceil(entry.reset_at)),
            retry_after_seconds=retry_after,
        )

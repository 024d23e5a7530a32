"""Rate limiting adapters.

The HTTP layer depends on the abstract limiter so the in-memory demo store
can be swapped for a shared backend without touching the routes.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryRollingWindowRateLimiter

__all__ = ["AbstractRateLimiter", "InMemoryRollingWindowRateLimiter", "RateLimitResult"]

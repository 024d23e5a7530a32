from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.security import router as security_router
from app.api.routes.submissions import router as submissions_router

__all__ = ["health_router", "security_router", "submissions_router"]

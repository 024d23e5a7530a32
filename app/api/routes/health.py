from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.context import AppContext, get_context

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(ctx: Annotated[AppContext, Depends(get_context)]) -> dict:
    """Liveness check.

    Returns:
        dict: ``status`` is always "ok"; ``environment`` echoes APP_ENV.
    """

    return {"status": "ok", "environment": ctx.settings.app_env}

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.context import AppContext, get_context
from app.schemas.submission import SecurityStatus

router = APIRouter(tags=["Security"])


@router.get("/security-status", response_model=SecurityStatus)
def security_status(ctx: Annotated[AppContext, Depends(get_context)]) -> SecurityStatus:
    """Describe which protections the demo advertises.

    These are fixed demonstration values, not live checks. Only
    ``httpsOnly`` depends on configuration: it is true in production.
    """

    return SecurityStatus(https_only=ctx.settings.is_production)

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, Request

from app.core.context import AppContext, get_context
from app.core.errors import ValidationAppError
from app.core.rate_limit import client_address, enforce_rate_limit
from app.schemas.submission import (
    FormSubmission,
    FormSubmissionResponse,
    MessageResponse,
    RateLimitedResponse,
    SanitizedData,
    ValidationErrorResponse,
)

router = APIRouter(tags=["Submissions"])

_RAW_FORM_BODY = {
    "required": True,
    "description": "Raw form fields as entered by the user.",
    "content": {"application/json": {"schema": {"type": "object"}}},
}


async def read_json_object(request: Request) -> dict[str, Any]:
    """Decode the request body as a JSON object.

    Raises:
        ValidationAppError: If the body is missing, not JSON, or not an object.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None
        problem = "Request body must be valid JSON"
    else:
        problem = "Request body must be a JSON object"

    if not isinstance(payload, dict):
        raise ValidationAppError(
            code="invalid_body",
            message="Validation failed",
            details={"errors": [{"field": "body", "message": problem}]},
        )
    return payload


@router.post(
    "/form-submission",
    response_model=FormSubmissionResponse,
    dependencies=[Depends(enforce_rate_limit)],
    openapi_extra={"requestBody": _RAW_FORM_BODY},
    responses={
        400: {"model": ValidationErrorResponse},
        429: {"model": RateLimitedResponse},
        500: {"model": MessageResponse},
    },
)
async def create_form_submission(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_context)],
    user_agent: Annotated[str | None, Header()] = None,
) -> FormSubmissionResponse:
    """Accept a form submission.

    The client must already be within its rate limit; the body is only read
    after that check, so malformed bodies are throttled like any other
    request. The payload is sanitized, validated as a whole, and stored
    together with the client address and user agent. The response echoes
    the stored fields so the user can see what sanitization did to their
    input.

    Raises:
        ValidationAppError: 400 with per-field errors, or a ``body`` error
            when the body is not a JSON object.
        RateLimitAppError: 429 with a retry hint (raised by the dependency).
    """
    payload = await read_json_object(request)
    submission = ctx.submissions.submit(
        payload,
        ip_address=client_address(request),
        user_agent=user_agent,
    )
    return FormSubmissionResponse(
        message="Form submitted successfully",
        submission_id=submission.id,
        sanitized_data=SanitizedData(
            full_name=submission.full_name,
            email=submission.email,
            phone=submission.phone,
            message=submission.message,
            security_preferences=submission.security_preferences,
        ),
    )


@router.get("/form-submissions", response_model=list[FormSubmission])
def list_form_submissions(
    ctx: Annotated[AppContext, Depends(get_context)],
) -> list[FormSubmission]:
    """Return every stored submission, newest first."""

    return ctx.submissions.list_submissions()


@router.get(
    "/form-submissions/{submission_id}",
    response_model=FormSubmission,
    responses={404: {"model": MessageResponse}},
)
def get_form_submission(
    submission_id: int,
    ctx: Annotated[AppContext, Depends(get_context)],
) -> FormSubmission:
    return ctx.submissions.get_submission(submission_id)

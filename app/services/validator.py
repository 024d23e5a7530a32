"""Validation of sanitized input against the constraints declared on pydantic models.

The models carry the rules (lengths, patterns, email syntax, allowed
preference values). This module turns pydantic's ``ValidationError`` into
the ``[{"field", "message"}]`` list the API returns, with one wording per
field and error type.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.errors import FieldError, ValidationAppError
from app.schemas.submission import FormSubmissionCreate

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

FIELD_LABELS: dict[str, str] = {
    "fullName": "Full name",
    "email": "Email",
    "phone": "Phone number",
    "message": "Message",
    "securityPreferences": "Security preferences",
}

FIELD_MESSAGES: dict[str, dict[str, str]] = {
    "fullName": {
        "string_too_short": "Full name must be at least 2 characters",
        "string_too_long": "Full name must be less than 50 characters",
        "string_pattern_mismatch": "Full name can only contain letters and spaces",
    },
    "email": {
        "value_error": "Please enter a valid email address",
        "string_too_long": "Email must be less than 100 characters",
    },
    "phone": {
        "string_pattern_mismatch": "Please enter a valid phone number",
        "string_too_long": "Phone number must be less than 20 characters",
    },
    "message": {
        "string_too_short": "Message must be at least 10 characters",
        "string_too_long": "Message must be less than 500 characters",
    },
    "securityPreferences": {
        "literal_error": "Invalid security preference: {input}",
    },
}

_GENERIC_MESSAGES: dict[str, str] = {
    "missing": "{label} is required",
    "string_type": "{label} must be a string",
    "list_type": "{label} must be a list",
    "tuple_type": "{label} must be a list",
}


def describe_error(error: Mapping[str, Any]) -> FieldError:
    """Render one pydantic error entry as a field error.

    The field is the first element of ``loc`` (the camelCase alias). Messages
    come from ``FIELD_MESSAGES`` first, then from the generic per-type
    wording, and fall back to pydantic's own message.
    """
    loc = error.get("loc") or ()
    field = str(loc[0]) if loc else "body"
    kind = error.get("type", "")
    label = FIELD_LABELS.get(field, field)

    template = FIELD_MESSAGES.get(field, {}).get(kind) or _GENERIC_MESSAGES.get(kind)
    if template is None:
        return {"field": field, "message": error.get("msg", "Invalid value")}
    return {"field": field, "message": template.format(label=label, input=error.get("input"))}


def validate(model: type[M], data: Mapping[str, Any]) -> M:
    """Validate ``data`` against ``model`` as a whole.

    Explicit ``null`` values are treated as absent, so a required field
    sent as ``null`` is reported as missing.

    Args:
        model: Pydantic model whose field constraints are the rules.
        data: Sanitized field mapping keyed by camelCase names.

    Returns:
        The validated model instance.

    Raises:
        ValidationAppError: With every failing field; nothing is accepted
            in that case.
    """
    present = {key: value for key, value in data.items() if value is not None}
    try:
        return model.model_validate(present)
    except ValidationError as exc:
        errors = [describe_error(e) for e in exc.errors()]

    raise ValidationAppError(
        code="validation_failed",
        message="Validation failed",
        details={"errors": errors},
    )


def validate_submission(data: Mapping[str, Any]) -> FormSubmissionCreate:
    try:
        return validate(FormSubmissionCreate, data)
    except ValidationAppError as exc:
        errors = (exc.details or {}).get("errors", [])
        logger.info(
            "submission.validation_failed",
            extra={"error_count": len(errors), "fields": sorted({e["field"] for e in errors})},
        )
        raise

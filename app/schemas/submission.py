"""Pydantic schemas for form submissions, users and API responses.

All models serialise with camelCase keys (``fullName``, ``submittedAt``)
while remaining constructible from snake_case names in Python code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

SecurityPreference = Literal["newsletter", "alerts", "2fa"]

SECURITY_PREFERENCES: tuple[str, ...] = ("newsletter", "alerts", "2fa")

EMAIL_MAX_LENGTH = 100


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FormSubmissionCreate(CamelModel):
    """Validated, sanitized submission fields ready to be stored.

    The field constraints are the acceptance rules for a submission; see
    ``app.services.validator`` for the user-facing message of each one.
    """

    model_config = ConfigDict(frozen=True)

    full_name: str = Field(..., min_length=2, max_length=50, pattern=r"^[a-zA-Z\s]+$")
    email: EmailStr
    phone: str | None = Field(None, max_length=20, pattern=r"^\+?[1-9]\d{0,15}$")
    message: str = Field(..., min_length=10, max_length=500)
    security_preferences: tuple[SecurityPreference, ...] | None = None

    @field_validator("email", mode="before")
    @classmethod
    def email_length(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value) > EMAIL_MAX_LENGTH:
            raise PydanticCustomError(
                "string_too_long",
                "Email must be less than {max_length} characters",
                {"max_length": EMAIL_MAX_LENGTH},
            )
        return value


class FormSubmission(FormSubmissionCreate):
    """A stored submission. Immutable once created."""

    id: int = Field(..., ge=1)
    submitted_at: datetime
    ip_address: str | None = None
    user_agent: str | None = None


class UserCreate(CamelModel):
    model_config = ConfigDict(frozen=True)

    username: str = Field(..., min_length=1)
    password: str


class User(UserCreate):
    id: int = Field(..., ge=1)


class SanitizedData(CamelModel):
    """Echo of the stored fields returned to the submitter."""

    full_name: str
    email: str
    phone: str | None = None
    message: str
    security_preferences: tuple[SecurityPreference, ...] | None = None


class FormSubmissionResponse(CamelModel):
    message: str = Field(..., description="Human-readable outcome.")
    submission_id: int = Field(..., description="Identifier assigned to the stored submission.")
    sanitized_data: SanitizedData = Field(
        ..., description="Fields exactly as persisted after sanitization."
    )


class FieldErrorItem(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    message: str = "Validation failed"
    errors: list[FieldErrorItem]


class RateLimitedResponse(CamelModel):
    message: str
    retry_after: int = Field(..., description="Seconds until the client's window resets.")


class MessageResponse(BaseModel):
    message: str


class SecurityStatus(CamelModel):
    """Static description of the protections this demo advertises."""

    csrf_protection: bool = True
    rate_limiting: bool = True
    input_validation: bool = True
    sql_injection_protection: bool = True
    xss_protection: bool = True
    https_only: bool = False
    security_headers: bool = True

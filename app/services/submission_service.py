"""Form submission workflow: sanitize, validate, persist."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from app.adapters.storage.base import AbstractStorage
from app.core.errors import NotFoundAppError
from app.schemas.submission import FormSubmission
from app.services.sanitizer import sanitize_submission
from app.services.validator import validate_submission

logger = logging.getLogger(__name__)


class SubmissionService:
    """Coordinates the sanitizer, validator and storage for one request.

    Rate limiting happens before this service is reached, in the HTTP layer.
    Storage is written only after the whole payload validates, so a rejected
    request never leaves a partial record behind.
    """

    def __init__(self, storage: AbstractStorage) -> None:
        self._storage = storage

    def submit(
        self,
        payload: Mapping[str, Any],
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> FormSubmission:
        """Sanitize, validate and store a raw submission.

        Args:
            payload: Decoded JSON body.
            ip_address: Client address to record with the submission.
            user_agent: Client ``User-Agent`` header to record.

        Returns:
            The stored submission.

        Raises:
            ValidationAppError: If the sanitized payload breaks any field rule.
        """
        sanitized = sanitize_submission(payload)
        validated = validate_submission(sanitized)
        submission = self._storage.create_form_submission(
            validated,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        logger.info(
            "submission.created",
            extra={
                "submission_id": submission.id,
                "has_phone": submission.phone is not None,
                "preference_count": len(submission.security_preferences or ()),
            },
        )
        return submission

    def list_submissions(self) -> list[FormSubmission]:
        return self._storage.get_form_submissions()

    def get_submission(self, submission_id: int) -> FormSubmission:
        """Fetch one submission.

        Raises:
            NotFoundAppError: If no submission has that id.
        """
        submission = self._storage.get_form_submission(submission_id)
        if submission is None:
            raise NotFoundAppError(
                code="submission_not_found",
                message="Submission not found",
                details={"resource": "form_submission", "resource_id": submission_id},
            )
        return submission

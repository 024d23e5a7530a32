"""Dict-backed storage for users and form submissions.

Process-local and non-durable: everything is lost on restart. Ids are
assigned from per-entity counters starting at 1 and never reused.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable

from app.adapters.storage.base import AbstractStorage
from app.core.errors import ValidationAppError
from app.schemas.submission import FormSubmission, FormSubmissionCreate, User, UserCreate

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryStorage(AbstractStorage):
    """Owns the user and submission maps; callers only ever see frozen models."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._users: dict[int, User] = {}
        self._submissions: dict[int, FormSubmission] = {}
        self._next_user_id = 1
        self._next_submission_id = 1

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return f"InMemoryStorage(users={len(self._users)}, submissions={len(self._submissions)})"

    def get_user(self, user_id: int) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def create_user(self, user: UserCreate) -> User:
        """Store a new user.

        Raises:
            ValidationAppError: If the username is already taken.
        """
        with self._lock:
            if self.get_user_by_username(user.username) is not None:
                raise ValidationAppError(
                    code="username_taken",
                    message="Username already exists",
                    details={"errors": [{"field": "username", "message": "Username already exists"}]},
                )
            stored = User(id=self._next_user_id, **user.model_dump())
            self._users[stored.id] = stored
            self._next_user_id += 1

        logger.info("user.created", extra={"user_id": stored.id})
        return stored

    def create_form_submission(
        self,
        submission: FormSubmissionCreate,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> FormSubmission:
        with self._lock:
            stored = FormSubmission(
                id=self._next_submission_id,
                submitted_at=self._clock(),
                ip_address=ip_address or None,
                user_agent=user_agent or None,
                **submission.model_dump(),
            )
            self._submissions[stored.id] = stored
            self._next_submission_id += 1

        logger.info(
            "submission.stored",
            extra={"submission_id": stored.id, "total": len(self._submissions)},
        )
        return stored

    def get_form_submissions(self) -> list[FormSubmission]:
        with self._lock:
            submissions = list(self._submissions.values())
        return sorted(submissions, key=lambda s: (s.submitted_at, s.id), reverse=True)

    def get_form_submission(self, submission_id: int) -> FormSubmission | None:
        with self._lock:
            return self._submissions.get(submission_id)

    def clear(self) -> None:
        with self._lock:
            self._users.clear()
            self._submissions.clear()
            self._next_user_id = 1
            self._next_submission_id = 1

"""Storage interfaces.

Services depend on this abstraction; the in-memory implementation is the
only backend the demo ships.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.schemas.submission import FormSubmission, FormSubmissionCreate, User, UserCreate


class AbstractStorage(ABC):
    """Append-only store for users and form submissions.

    Read operations return ``None`` for missing records instead of raising.
    """

    @abstractmethod
    def get_user(self, user_id: int) -> User | None:
        raise NotImplementedError

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None:
        raise NotImplementedError

    @abstractmethod
    def create_user(self, user: UserCreate) -> User:
        raise NotImplementedError

    @abstractmethod
    def create_form_submission(
        self,
        submission: FormSubmissionCreate,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> FormSubmission:
        """Persist a validated submission and return the stored entity.

        Args:
            submission: Sanitized and validated fields.
            ip_address: Client address captured by the route handler.
            user_agent: Client ``User-Agent`` header.

        Returns:
            The stored submission with its id and timestamp assigned.
        """
        raise NotImplementedError

    @abstractmethod
    def get_form_submissions(self) -> list[FormSubmission]:
        """Return all submissions, newest first."""
        raise NotImplementedError

    @abstractmethod
    def get_form_submission(self, submission_id: int) -> FormSubmission | None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        """Drop every stored record and restart id sequences."""
        raise NotImplementedError

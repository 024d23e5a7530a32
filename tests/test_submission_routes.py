"""Tests for the form submission API routes.

Each test gets a fresh app (see conftest.py) with its own storage and a
rate limiter driven by a frozen clock, so quotas never leak between tests.
"""

from typing import Any, Callable
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.storage.in_memory import InMemoryStorage
from app.core.app_factory import create_app
from app.core.config import Settings

PayloadFactory = Callable[..., dict[str, Any]]


# ======================== Submission Tests ========================


class TestFormSubmission:
    """POST /api/form-submission happy path and validation."""

    def test_valid_submission_returns_sanitized_data(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        payload = make_payload(
            fullName="  Jane Doe ",
            message="<script>alert('xss')</script>I love secure forms!",
        )

        response = client.post("/api/form-submission", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Form submitted successfully"
        assert body["submissionId"] == 1
        assert body["sanitizedData"] == {
            "fullName": "Jane Doe",
            "email": "jane.doe@example.com",
            "phone": "+15551234567",
            "message": "I love secure forms!",
            "securityPreferences": ["newsletter", "2fa"],
        }

    def test_submission_ids_increase(self, client: TestClient, make_payload: PayloadFactory) -> None:
        ids = [
            client.post("/api/form-submission", json=make_payload()).json()["submissionId"]
            for _ in range(3)
        ]

        assert ids == [1, 2, 3]

    def test_optional_fields_may_be_omitted(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        payload = make_payload(phone=..., securityPreferences=...)

        response = client.post("/api/form-submission", json=payload)

        assert response.status_code == 200
        data = response.json()["sanitizedData"]
        assert data["phone"] is None
        assert data["securityPreferences"] is None

    def test_empty_phone_is_accepted(self, client: TestClient, make_payload: PayloadFactory) -> None:
        response = client.post("/api/form-submission", json=make_payload(phone=""))

        assert response.status_code == 200
        assert response.json()["sanitizedData"]["phone"] is None

    def test_records_client_address_and_user_agent(
        self, client: TestClient, make_payload: PayloadFactory, storage: InMemoryStorage
    ) -> None:
        client.post(
            "/api/form-submission",
            json=make_payload(),
            headers={"User-Agent": "secure-form-tests/1.0"},
        )

        stored = storage.get_form_submission(1)
        assert stored is not None
        assert stored.ip_address == "testclient"
        assert stored.user_agent == "secure-form-tests/1.0"

    def test_full_name_of_one_character_rejected(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        response = client.post("/api/form-submission", json=make_payload(fullName="J"))

        assert response.status_code == 400
        assert response.json() == {
            "message": "Validation failed",
            "errors": [{"field": "fullName", "message": "Full name must be at least 2 characters"}],
        }

    def test_full_name_of_two_characters_accepted(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        response = client.post("/api/form-submission", json=make_payload(fullName="Jo"))

        assert response.status_code == 200

    def test_markup_only_name_is_rejected_after_sanitization(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        payload = make_payload(fullName="<script>alert(1)</script>")

        response = client.post("/api/form-submission", json=payload)

        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert fields == {"fullName"}

    def test_validation_failure_stores_nothing(
        self, client: TestClient, make_payload: PayloadFactory, storage: InMemoryStorage
    ) -> None:
        payload = make_payload(email="not-an-email", message="short")

        response = client.post("/api/form-submission", json=payload)

        assert response.status_code == 400
        assert {e["field"] for e in response.json()["errors"]} == {"email", "message"}
        assert storage.get_form_submissions() == []

    def test_non_object_body_returns_400(self, client: TestClient) -> None:
        response = client.post("/api/form-submission", json=["not", "an", "object"])

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"
        assert response.json()["errors"]

    def test_missing_body_returns_400(self, client: TestClient) -> None:
        response = client.post("/api/form-submission")

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_malformed_json_reported_against_body(self, client: TestClient) -> None:
        response = client.post(
            "/api/form-submission",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "message": "Validation failed",
            "errors": [{"field": "body", "message": "Request body must be valid JSON"}],
        }

    def test_non_object_body_error_names_body(self, client: TestClient) -> None:
        response = client.post("/api/form-submission", json=["not", "an", "object"])

        assert response.json()["errors"] == [
            {"field": "body", "message": "Request body must be a JSON object"}
        ]

    def test_unexpected_error_returns_generic_500(
        self, app: FastAPI, make_payload: PayloadFactory, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        storage = app.state.context.storage

        def boom(*args: Any, **kwargs: Any) -> None:
            raise RuntimeError("disk on fire at /var/secret/path")

        monkeypatch.setattr(storage, "create_form_submission", boom)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post("/api/form-submission", json=make_payload())

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}
        assert "secret" not in response.text


# ======================== Rate Limit Tests ========================


class TestRateLimiting:
    """Per-client rate limiting on submissions."""

    def test_sixth_request_in_window_is_blocked(
        self, client: TestClient, make_payload: PayloadFactory, limiter_clock: Mock
    ) -> None:
        for _ in range(5):
            assert client.post("/api/form-submission", json=make_payload()).status_code == 200

        limiter_clock.return_value = 1_030.0
        blocked = client.post("/api/form-submission", json=make_payload())

        assert blocked.status_code == 429
        body = blocked.json()
        assert body["message"] == "Too many requests. Please try again later."
        assert 0 < body["retryAfter"] <= 60
        assert body["retryAfter"] == 30
        assert blocked.headers["Retry-After"] == "30"
        assert blocked.headers["X-RateLimit-Limit"] == "5"
        assert blocked.headers["X-RateLimit-Remaining"] == "0"
        assert blocked.headers["X-RateLimit-Reset"] == "1060"

    def test_rate_limit_runs_before_validation(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        for _ in range(5):
            client.post("/api/form-submission", json=make_payload(fullName="J"))

        blocked = client.post("/api/form-submission", json=make_payload(fullName="J"))

        assert blocked.status_code == 429
        assert "errors" not in blocked.json()

    def test_blocked_client_gets_429_for_malformed_body(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        for _ in range(5):
            assert client.post("/api/form-submission", json=make_payload()).status_code == 200

        blocked = client.post(
            "/api/form-submission",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert blocked.status_code == 429
        assert blocked.json()["message"] == "Too many requests. Please try again later."

    def test_malformed_bodies_count_toward_the_limit(
        self, client: TestClient, make_payload: PayloadFactory, storage: InMemoryStorage
    ) -> None:
        statuses = [
            client.post(
                "/api/form-submission",
                content=b"{not json",
                headers={"Content-Type": "application/json"},
            ).status_code
            for _ in range(5)
        ]

        after = client.post("/api/form-submission", json=make_payload())

        assert statuses == [400] * 5
        assert after.status_code == 429
        assert storage.get_form_submissions() == []

    def test_blocked_request_stores_nothing(
        self, client: TestClient, make_payload: PayloadFactory, storage: InMemoryStorage
    ) -> None:
        for _ in range(6):
            client.post("/api/form-submission", json=make_payload())

        assert len(storage.get_form_submissions()) == 5

    def test_window_expiry_allows_new_requests(
        self, client: TestClient, make_payload: PayloadFactory, limiter_clock: Mock
    ) -> None:
        for _ in range(5):
            client.post("/api/form-submission", json=make_payload())
        assert client.post("/api/form-submission", json=make_payload()).status_code == 429

        limiter_clock.return_value = 1_061.0

        assert client.post("/api/form-submission", json=make_payload()).status_code == 200

    def test_listing_is_not_rate_limited(
        self, client: TestClient, make_payload: PayloadFactory
    ) -> None:
        for _ in range(6):
            client.post("/api/form-submission", json=make_payload())

        assert client.get("/api/form-submissions").status_code == 200

    def test_rate_limit_can_be_disabled(self, make_payload: PayloadFactory) -> None:
        cfg = Settings()
        cfg.app.rate_limit_enabled = False
        client = TestClient(create_app(cfg, configure_logs=False))

        statuses = [
            client.post("/api/form-submission", json=make_payload()).status_code for _ in range(7)
        ]

        assert statuses == [200] * 7

    def test_headers_can_be_omitted(self, make_payload: PayloadFactory) -> None:
        cfg = Settings()
        cfg.app.rate_limit_include_headers = False
        cfg.app.rate_limit_requests = 1
        client = TestClient(create_app(cfg, configure_logs=False))

        client.post("/api/form-submission", json=make_payload())
        blocked = client.post("/api/form-submission", json=make_payload())

        assert blocked.status_code == 429
        assert "Retry-After" not in blocked.headers
        assert blocked.json()["retryAfter"] > 0


# ======================== Listing Tests ========================


class TestListing:
    """GET /api/form-submissions and /api/form-submissions/{id}."""

    def test_empty_list(self, client: TestClient) -> None:
        response = client.get("/api/form-submissions")

        assert response.status_code == 200
        assert response.json() == []

    def test_round_trip_response_matches_storage_and_listing(
        self, client: TestClient, make_payload: PayloadFactory, storage: InMemoryStorage
    ) -> None:
        payload = make_payload(message="  <em>Please</em> keep me posted on alerts.  ")

        created = client.post("/api/form-submission", json=payload).json()
        listed = client.get("/api/form-submissions").json()

        sanitized = created["sanitizedData"]
        persisted = storage.get_form_submission(created["submissionId"])
        assert persisted is not None
        assert sanitized == {
            "fullName": persisted.full_name,
            "email": persisted.email,
            "phone": persisted.phone,
            "message": persisted.message,
            "securityPreferences": list(persisted.security_preferences),
        }

        assert len(listed) == 1
        entry = listed[0]
        assert entry["id"] == created["submissionId"]
        for key, value in sanitized.items():
            assert entry[key] == value
        assert entry["ipAddress"] == "testclient"
        assert "submittedAt" in entry

    def test_listed_submission_cannot_alter_storage(
        self, client: TestClient, make_payload: PayloadFactory, storage: InMemoryStorage
    ) -> None:
        client.post("/api/form-submission", json=make_payload())

        listed = storage.get_form_submissions()[0]
        with pytest.raises(AttributeError):
            listed.security_preferences.append("hacked")  # type: ignore[union-attr]

        again = client.get("/api/form-submissions").json()[0]
        assert again["securityPreferences"] == ["newsletter", "2fa"]

    def test_list_newest_first(self, make_payload: PayloadFactory) -> None:
        from datetime import datetime, timedelta, timezone

        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        moments = iter([base + timedelta(hours=2), base, base + timedelta(hours=1)])
        storage = InMemoryStorage(clock=lambda: next(moments))
        client = TestClient(create_app(storage=storage, configure_logs=False))

        for name in ("Second Newest", "Oldest Entry", "Middle Entry"):
            client.post("/api/form-submission", json=make_payload(fullName=name))

        names = [s["fullName"] for s in client.get("/api/form-submissions").json()]
        assert names == ["Second Newest", "Middle Entry", "Oldest Entry"]

    def test_get_single_submission(self, client: TestClient, make_payload: PayloadFactory) -> None:
        submission_id = client.post("/api/form-submission", json=make_payload()).json()["submissionId"]

        response = client.get(f"/api/form-submissions/{submission_id}")

        assert response.status_code == 200
        assert response.json()["id"] == submission_id
        assert response.json()["fullName"] == "Jane Doe"

    def test_get_missing_submission_returns_404(self, client: TestClient) -> None:
        response = client.get("/api/form-submissions/999")

        assert response.status_code == 404
        assert response.json() == {"message": "Submission not found"}


# ======================== Status Endpoints ========================


class TestStatusEndpoints:
    def test_security_status_flags(self, client: TestClient) -> None:
        response = client.get("/api/security-status")

        assert response.status_code == 200
        assert response.json() == {
            "csrfProtection": True,
            "rateLimiting": True,
            "inputValidation": True,
            "sqlInjectionProtection": True,
            "xssProtection": True,
            "httpsOnly": False,
            "securityHeaders": True,
        }

    def test_https_only_reported_in_production(self) -> None:
        cfg = Settings(app_env="production")
        client = TestClient(create_app(cfg, configure_logs=False))

        assert client.get("/api/security-status").json()["httpsOnly"] is True

    def test_health_check_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "environment": "testing"}

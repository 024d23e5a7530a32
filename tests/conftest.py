"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so the global
settings never pick up a developer's local .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "5")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_SECONDS", "60")

from typing import Any, Callable
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.adapters.rate_limit.in_memory import InMemoryRollingWindowRateLimiter
from app.adapters.storage.in_memory import InMemoryStorage
from app.core.app_factory import create_app


@pytest.fixture
def limiter_clock() -> Mock:
    """Frozen UNIX clock driving the rate limiter; tests advance return_value."""
    return Mock(return_value=1_000.0)


@pytest.fixture
def rate_limiter(limiter_clock: Mock) -> InMemoryRollingWindowRateLimiter:
    return InMemoryRollingWindowRateLimiter(limit=5, window_seconds=60, clock=limiter_clock)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def app(rate_limiter: InMemoryRollingWindowRateLimiter, storage: InMemoryStorage) -> FastAPI:
    """Fresh application with its own limiter and storage."""
    return create_app(rate_limiter=rate_limiter, storage=storage, configure_logs=False)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    return {
        "fullName": "Jane Doe",
        "email": "Jane.Doe@Example.com",
        "phone": "+15551234567",
        "message": "Hello, I would like to learn more about security.",
        "securityPreferences": ["newsletter", "2fa"],
    }


@pytest.fixture
def make_payload(valid_payload: dict[str, Any]) -> Callable[..., dict[str, Any]]:
    """Build a payload from the valid one, overriding or removing fields."""

    def _make(**overrides: Any) -> dict[str, Any]:
        payload = dict(valid_payload)
        for key, value in overrides.items():
            if value is ...:
                payload.pop(key, None)
            else:
                payload[key] = value
        return payload

    return _make

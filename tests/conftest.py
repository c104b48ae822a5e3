"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from query_layer.config import Settings


class FakeClock:
    """Manually advanced millisecond clock for staleness tests."""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Backoff is disabled so retry tests run without sleeping. Override
    specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.QUERY_MAX_RETRIES = 1
    """
    return Settings(
        # === Application ===
        APP_NAME="Query Layer (Test)",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Cache ===
        STALE_AFTER_MS=300_000,

        # === Retry ===
        QUERY_MAX_RETRIES=3,
        MUTATION_MAX_RETRIES=2,
        RETRY_BACKOFF_INITIAL_MS=0,
        RETRY_BACKOFF_MAX_MS=0,

        # === Session ===
        AUTH_FAILURE_STATUS_CODES=[401],
        AUTH_ENTRY_PATH="/auth",

        # === HTTP ===
        API_BASE_URL="http://api.test",
        LOGOUT_ENDPOINT="/api/auth/logout",
        HTTP_TIMEOUT=5.0,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock starting at t=0 ms; advance with fake_clock.advance(ms)."""
    return FakeClock()

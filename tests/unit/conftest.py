"""Unit test fixtures (mocks and stubs).

Provides mock collaborators and pre-wired components for testing without
a real API or browser.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from query_layer.auth.monitor import AuthFailureMonitor
from query_layer.cache.request_cache import RequestCache
from query_layer.retry.classifier import ErrorClassifier
from query_layer.retry.engine import RetryEngine
from query_layer.retry.policy import RetryPolicy


@pytest.fixture
def mock_session_manager():
    """Mock SessionManager with an async logout."""
    mock = Mock()
    mock.logout = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_navigator():
    """Mock Navigator with a sync redirect_to."""
    mock = Mock()
    mock.redirect_to = Mock(return_value=None)
    return mock


@pytest.fixture
def mock_sleep():
    """Stand-in for asyncio.sleep that records backoff delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def retry_policy() -> RetryPolicy:
    """Default budgets (query 3, mutation 2) with backoff disabled."""
    return RetryPolicy(backoff_initial_ms=0, backoff_max_ms=0)


@pytest.fixture
def retry_engine(retry_policy, mock_sleep) -> RetryEngine:
    return RetryEngine(ErrorClassifier(), retry_policy, sleep=mock_sleep)


@pytest.fixture
def auth_monitor(mock_session_manager, mock_navigator) -> AuthFailureMonitor:
    return AuthFailureMonitor(mock_session_manager, mock_navigator, auth_path="/auth")


@pytest.fixture
def request_cache(retry_engine, auth_monitor, fake_clock) -> RequestCache:
    """RequestCache on a fake clock with a 300000 ms default window."""
    return RequestCache(
        engine=retry_engine,
        monitor=auth_monitor,
        default_stale_after_ms=300_000,
        clock=fake_clock,
    )

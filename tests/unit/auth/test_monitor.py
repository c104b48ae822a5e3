"""
Unit tests for AuthFailureMonitor.

Tests the at-most-once session-expiry sequence per episode, episode reset
and tolerance of failing collaborators.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from prometheus_client import REGISTRY

from query_layer.auth.monitor import AuthFailureMonitor
from query_layer.fetch.exceptions import AuthenticationError
from query_layer.models.enums import ErrorClassification
from query_layer.retry.exceptions import RequestFailed


def episodes_fired() -> float:
    return REGISTRY.get_sample_value("query_auth_episodes_total") or 0.0


# ============================================================================
# Single Failures
# ============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "classification", [ErrorClassification.TRANSIENT, ErrorClassification.PERMANENT]
)
async def test_non_auth_failures_are_ignored(
    auth_monitor, mock_session_manager, mock_navigator, classification
):
    fired = await auth_monitor.on_classified_failure(classification)

    assert fired is False
    assert not auth_monitor.episode_active
    mock_session_manager.logout.assert_not_awaited()
    mock_navigator.redirect_to.assert_not_called()


@pytest.mark.asyncio
async def test_auth_failure_logs_out_then_redirects(auth_monitor):
    order = []
    auth_monitor.session_manager.logout = AsyncMock(side_effect=lambda: order.append("logout"))
    auth_monitor.navigator.redirect_to = Mock(side_effect=lambda path: order.append(path))

    fired = await auth_monitor.on_classified_failure(
        ErrorClassification.AUTH_FAILURE, key=("me",)
    )

    assert fired is True
    assert auth_monitor.episode_active
    assert order == ["logout", "/auth"]


@pytest.mark.asyncio
async def test_episode_counter_increments_once(auth_monitor):
    before = episodes_fired()

    await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)
    await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)

    assert episodes_fired() - before == 1


# ============================================================================
# Episodes
# ============================================================================


@pytest.mark.asyncio
async def test_second_failure_in_episode_is_ignored(
    auth_monitor, mock_session_manager, mock_navigator
):
    first = await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)
    second = await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)

    assert (first, second) == (True, False)
    mock_session_manager.logout.assert_awaited_once()
    mock_navigator.redirect_to.assert_called_once_with("/auth")


@pytest.mark.asyncio
async def test_concurrent_failures_fire_once(auth_monitor, mock_session_manager, mock_navigator):
    """Five failures in the same tick, while logout is still running."""
    release = asyncio.Event()

    async def slow_logout():
        await release.wait()

    mock_session_manager.logout = AsyncMock(side_effect=slow_logout)

    calls = [
        asyncio.create_task(auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE))
        for _ in range(5)
    ]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*calls)

    assert sorted(results) == [False, False, False, False, True]
    mock_session_manager.logout.assert_awaited_once()
    mock_navigator.redirect_to.assert_called_once_with("/auth")


@pytest.mark.asyncio
async def test_five_concurrent_auth_failures_through_cache(
    request_cache, mock_session_manager, mock_navigator
):
    fetchers = [
        AsyncMock(side_effect=AuthenticationError("Request failed: 401", status_code=401))
        for _ in range(5)
    ]

    results = await asyncio.gather(
        *(request_cache.get(("resource", i), f) for i, f in enumerate(fetchers)),
        return_exceptions=True,
    )

    assert all(isinstance(r, RequestFailed) and r.is_auth_failure for r in results)
    assert all(f.await_count == 1 for f in fetchers)
    mock_session_manager.logout.assert_awaited_once()
    mock_navigator.redirect_to.assert_called_once_with("/auth")


@pytest.mark.asyncio
async def test_reset_starts_new_episode(auth_monitor, mock_session_manager, mock_navigator):
    await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)

    auth_monitor.reset()
    assert not auth_monitor.episode_active

    fired = await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)

    assert fired is True
    assert mock_session_manager.logout.await_count == 2
    assert mock_navigator.redirect_to.call_count == 2


# ============================================================================
# Collaborators
# ============================================================================


@pytest.mark.asyncio
async def test_sync_and_async_collaborators():
    session_manager = Mock()
    session_manager.logout = Mock(return_value=None)
    navigator = Mock()
    navigator.redirect_to = AsyncMock(return_value=None)
    monitor = AuthFailureMonitor(session_manager, navigator, auth_path="/login")

    await monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)

    session_manager.logout.assert_called_once_with()
    navigator.redirect_to.assert_awaited_once_with("/login")


@pytest.mark.asyncio
async def test_failing_logout_still_redirects(auth_monitor, mock_session_manager, mock_navigator):
    mock_session_manager.logout = AsyncMock(side_effect=RuntimeError("network down"))

    fired = await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE)

    assert fired is True
    mock_navigator.redirect_to.assert_called_once_with("/auth")
    assert auth_monitor.episode_active


@pytest.mark.asyncio
async def test_failing_redirect_keeps_episode(auth_monitor, mock_navigator):
    mock_navigator.redirect_to = Mock(side_effect=RuntimeError("no window"))

    assert await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE) is True
    assert await auth_monitor.on_classified_failure(ErrorClassification.AUTH_FAILURE) is False

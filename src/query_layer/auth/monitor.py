"""
Session-expiry monitor.

Receives the classification of every failed fetch. The first AUTH_FAILURE
of an episode logs the user out and redirects to the authentication entry
point; later AUTH_FAILUREs in the same episode are ignored, so a burst of
expired-session errors produces one redirect, not one per request.

The episode flag is tested and set in a single synchronous step (no await
in between), which is sufficient on a single-threaded event loop.
"""

import inspect
from typing import Any, Callable, Optional

import structlog

from query_layer.auth.collaborators import Navigator, SessionManager
from query_layer.models.enums import ErrorClassification
from query_layer.models.keys import RequestKey
from query_layer.monitoring.metrics import auth_episodes_total

logger = structlog.get_logger(__name__)


async def _call(operation: Callable[..., Any], *args: Any) -> None:
    result = operation(*args)
    if inspect.isawaitable(result):
        await result


class AuthFailureMonitor:
    """
    Fires logout + redirect at most once per episode.

    Attributes:
        session_manager: Invalidates the current session
        navigator: Moves the user to `auth_path`
        auth_path: Authentication entry point
    """

    def __init__(
        self,
        session_manager: SessionManager,
        navigator: Navigator,
        auth_path: str = "/auth",
    ):
        self.session_manager = session_manager
        self.navigator = navigator
        self.auth_path = auth_path
        self._episode_active = False

    @property
    def episode_active(self) -> bool:
        return self._episode_active

    async def on_classified_failure(
        self,
        classification: ErrorClassification,
        key: Optional[RequestKey] = None,
    ) -> bool:
        """
        Handle one classified failure.

        Args:
            classification: Classification of the failure
            key: Request key of the failed fetch, for logging

        Returns:
            True if this call started the episode and ran the sequence
        """
        if classification is not ErrorClassification.AUTH_FAILURE:
            return False

        if self._episode_active:
            logger.debug("Auth failure inside active episode, ignoring", key=key)
            return False
        self._episode_active = True

        auth_episodes_total.inc()
        logger.warning(
            "Session expired, logging out",
            key=key,
            redirect_to=self.auth_path,
        )

        try:
            await _call(self.session_manager.logout)
        except Exception:
            # Redirect even when logout failed
            logger.exception("Logout failed during session-expiry sequence")

        try:
            await _call(self.navigator.redirect_to, self.auth_path)
        except Exception:
            logger.exception(
                "Redirect failed during session-expiry sequence",
                redirect_to=self.auth_path,
            )
        return True

    def reset(self) -> None:
        """New session established: start a new episode."""
        if self._episode_active:
            logger.info("Session re-established, auth episode closed")
        self._episode_active = False

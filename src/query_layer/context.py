"""
Session context: the single owner of cache and auth-episode state.

One SessionContext is created when the application (or user session)
starts and is passed to whatever issues requests. There are no
module-level caches or flags; two contexts never share state.

Usage:
    context = create_session_context(session_manager, navigator)
    me = await context.cache.get(("me",), fetch_me)
    ...
    context.on_session_established()  # after a successful login
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from query_layer.auth.collaborators import Navigator, SessionManager
from query_layer.auth.monitor import AuthFailureMonitor
from query_layer.cache.request_cache import RequestCache, monotonic_ms
from query_layer.config import Settings, settings as default_settings
from query_layer.logging_config import configure_logging
from query_layer.retry.classifier import ErrorClassifier
from query_layer.retry.engine import RetryEngine
from query_layer.retry.policy import RetryPolicy

logger = structlog.get_logger(__name__)


class SessionContext:
    """
    Owns the request cache and the auth failure monitor.

    Attributes:
        settings: Settings the context was built from
        classifier: Error classifier shared by all fetches
        policy: Retry policy shared by all fetches
        engine: Retry engine shared by all fetches
        monitor: Auth failure monitor (holds the episode flag)
        cache: Request cache
    """

    def __init__(
        self,
        settings: Settings,
        session_manager: SessionManager,
        navigator: Navigator,
        clock: Callable[[], float] = monotonic_ms,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.settings = settings
        self.classifier = ErrorClassifier.from_settings(settings)
        self.policy = RetryPolicy.from_settings(settings)
        self.engine = RetryEngine(self.classifier, self.policy, sleep=sleep)
        self.monitor = AuthFailureMonitor(
            session_manager=session_manager,
            navigator=navigator,
            auth_path=settings.AUTH_ENTRY_PATH,
        )
        self.cache = RequestCache(
            engine=self.engine,
            monitor=self.monitor,
            default_stale_after_ms=settings.STALE_AFTER_MS,
            clock=clock,
        )

        logger.info(
            "Session context created",
            stale_after_ms=settings.STALE_AFTER_MS,
            auth_entry_path=settings.AUTH_ENTRY_PATH,
        )

    def on_session_established(self) -> None:
        """
        A new session was authenticated.

        Closes the current auth episode and drops data cached for the
        previous session.
        """
        self.monitor.reset()
        self.cache.clear()
        logger.info("New session established")


def create_session_context(
    session_manager: SessionManager,
    navigator: Navigator,
    settings: Optional[Settings] = None,
) -> SessionContext:
    """
    Configure logging and build a SessionContext.

    Args:
        session_manager: Invalidates the session on expiry
        navigator: Redirects to the authentication entry point
        settings: Defaults to the environment-loaded settings
    """
    settings = settings or default_settings
    configure_logging(log_level=settings.LOG_LEVEL, environment=settings.ENVIRONMENT)
    return SessionContext(settings, session_manager, navigator)

"""
Error classification for fetch failures.

Maps an arbitrary exception raised by a fetcher onto the closed
ErrorClassification taxonomy. Checks are ordered from most-specific to
least-specific and the first match wins:

    1. query_layer.fetch exception hierarchy
    2. HTTP status code (status_code attribute or httpx.HTTPStatusError)
    3. Transport-level failures (httpx, TimeoutError, ConnectionError)
    4. Programming errors in the request (ValueError, TypeError)
    5. Message markers such as "401" (last resort)
    6. Everything else is TRANSIENT
"""

import asyncio
import re
from typing import Iterable, Optional

import httpx
import structlog

from query_layer.config import Settings
from query_layer.fetch.exceptions import (
    AuthenticationError,
    FetchConnectionError,
    RequestRejectedError,
    ServerError,
)
from query_layer.models.enums import ErrorClassification

logger = structlog.get_logger(__name__)

# Statuses the server uses to say "try again later"
RETRYABLE_CLIENT_STATUSES = frozenset({408, 425, 429})

DEFAULT_AUTH_MARKERS = (r"\b401\b", r"authentication", r"unauthori[sz]ed")


class ErrorClassifier:
    """
    Three-way classifier: TRANSIENT, AUTH_FAILURE or PERMANENT.

    Attributes:
        auth_status_codes: HTTP statuses treated as an expired/invalid session
        auth_markers: Compiled regexes matched against the error message when
            no structured signal is available
    """

    def __init__(
        self,
        auth_status_codes: Iterable[int] = (401,),
        auth_markers: Iterable[str] = DEFAULT_AUTH_MARKERS,
    ):
        self.auth_status_codes = frozenset(auth_status_codes)
        self.auth_markers = [re.compile(marker, re.IGNORECASE) for marker in auth_markers]

    @classmethod
    def from_settings(cls, settings: Settings) -> "ErrorClassifier":
        return cls(auth_status_codes=settings.AUTH_FAILURE_STATUS_CODES)

    def classify(self, error: BaseException) -> ErrorClassification:
        """Classify a fetch failure."""
        # The fetch hierarchy carries an explicit signal
        if isinstance(error, AuthenticationError):
            return ErrorClassification.AUTH_FAILURE
        if isinstance(error, RequestRejectedError):
            return ErrorClassification.PERMANENT
        if isinstance(error, (FetchConnectionError, ServerError)):
            return ErrorClassification.TRANSIENT

        status_code = self._status_code(error)
        if status_code is not None:
            return self._classify_status(status_code)

        if isinstance(error, (httpx.TransportError, asyncio.TimeoutError, TimeoutError, ConnectionError)):
            return ErrorClassification.TRANSIENT

        if isinstance(error, (ValueError, TypeError)):
            return ErrorClassification.PERMANENT

        message = str(error)
        if any(marker.search(message) for marker in self.auth_markers):
            logger.debug(
                "Classified auth failure from error message",
                error_type=type(error).__name__,
            )
            return ErrorClassification.AUTH_FAILURE

        return ErrorClassification.TRANSIENT

    def _classify_status(self, status_code: int) -> ErrorClassification:
        if status_code in self.auth_status_codes:
            return ErrorClassification.AUTH_FAILURE
        if status_code >= 500 or status_code in RETRYABLE_CLIENT_STATUSES:
            return ErrorClassification.TRANSIENT
        if 400 <= status_code < 500:
            return ErrorClassification.PERMANENT
        return ErrorClassification.TRANSIENT

    @staticmethod
    def _status_code(error: BaseException) -> Optional[int]:
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code
        status_code = getattr(error, "status_code", None)
        if isinstance(status_code, int):
            return status_code
        return None

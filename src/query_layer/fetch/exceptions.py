"""
Structured exceptions for fetchers.

Fetchers raise these to hand the error classifier an explicit signal
(status code, error kind) instead of a free-form message. The classifier
still copes with arbitrary exceptions, but these take precedence.
"""

from typing import Optional

import httpx


class FetchError(Exception):
    """
    Base exception for all fetch errors.

    All fetch-specific exceptions inherit from this to allow catching
    any fetch-related error with a single except clause.
    """
    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code


class FetchConnectionError(FetchError):
    """
    Raised when the data source cannot be reached.

    Includes network errors, DNS failures, refused connections.
    Retried under the operation's budget.
    """
    pass


class FetchTimeoutError(FetchConnectionError):
    """Raised when the data source does not answer in time. Retried."""
    pass


class ServerError(FetchError):
    """
    Raised when the data source answers with a server-side failure (5xx,
    429 throttling). Retried.
    """
    pass


class AuthenticationError(FetchError):
    """
    Raised when the data source rejects the caller's credentials.

    Never retried; starts the session-expiry episode.
    """
    pass


class RequestRejectedError(FetchError):
    """
    Raised when the data source rejects the request itself (malformed
    payload, missing resource, validation failure). Never retried.
    """
    pass


def raise_for_status(
    response: httpx.Response,
    auth_status_codes: frozenset[int] = frozenset({401}),
) -> httpx.Response:
    """
    Map a non-success httpx response onto the fetch exception hierarchy.

    Args:
        response: Response returned by the transport
        auth_status_codes: Statuses that mean the session is no longer valid

    Returns:
        The same response when it is successful

    Raises:
        AuthenticationError: Status in auth_status_codes
        ServerError: 5xx, 408, 425 or 429
        RequestRejectedError: Any other 4xx
    """
    if not response.is_error:
        return response

    status_code = response.status_code
    details: dict = {"status": status_code, "body": response.text[:500]}
    try:
        details["url"] = str(response.request.url)
    except RuntimeError:
        # Response built without a request (e.g. in tests)
        pass
    message = f"Request failed: {status_code} {response.reason_phrase}"

    if status_code in auth_status_codes:
        raise AuthenticationError(message, details=details, status_code=status_code)
    if status_code >= 500 or status_code in (408, 425, 429):
        raise ServerError(message, details=details, status_code=status_code)
    raise RequestRejectedError(message, details=details, status_code=status_code)

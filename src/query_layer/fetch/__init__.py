"""
Fetcher-facing error types.

Fetchers are opaque coroutine functions supplied by callers; the only
contract the Query Layer imposes on them is how they fail.
"""

from query_layer.fetch.exceptions import (
    AuthenticationError,
    FetchConnectionError,
    FetchError,
    FetchTimeoutError,
    RequestRejectedError,
    ServerError,
    raise_for_status,
)

__all__ = [
    "FetchError",
    "FetchConnectionError",
    "FetchTimeoutError",
    "ServerError",
    "AuthenticationError",
    "RequestRejectedError",
    "raise_for_status",
]

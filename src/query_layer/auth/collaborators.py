"""
External collaborators of the session-expiry sequence.

SessionManager and Navigator are protocols: the host application supplies
the implementations. Either method may be a plain function or a coroutine.
HttpSessionManager is a ready-made SessionManager that clears the local
token and tells the API to drop the server-side session.
"""

from typing import Any, Optional, Protocol

import httpx
import structlog

from query_layer.config import Settings

logger = structlog.get_logger(__name__)


class SessionManager(Protocol):
    """Invalidates the current session. Return value is ignored."""

    def logout(self) -> Any:
        ...


class Navigator(Protocol):
    """Leaves the current view. Return value is ignored."""

    def redirect_to(self, path: str) -> Any:
        ...


class HttpSessionManager:
    """
    SessionManager backed by the API's logout endpoint.

    The in-memory token is cleared before the network call, and a failing
    logout request never blocks the rest of the sequence: the session is
    already unusable client-side.

    Attributes:
        base_url: API base URL
        logout_endpoint: Path of the logout endpoint
        timeout: Request timeout in seconds
        token: Current bearer token, None once logged out
    """

    def __init__(
        self,
        base_url: str,
        logout_endpoint: str = "/api/auth/logout",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.logout_endpoint = logout_endpoint
        self.timeout = timeout
        self.token: Optional[str] = None
        self._client = client

    @classmethod
    def from_settings(
        cls, settings: Settings, client: Optional[httpx.AsyncClient] = None
    ) -> "HttpSessionManager":
        return cls(
            base_url=settings.API_BASE_URL,
            logout_endpoint=settings.LOGOUT_ENDPOINT,
            timeout=settings.HTTP_TIMEOUT,
            client=client,
        )

    def set_token(self, token: str) -> None:
        self.token = token

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    async def logout(self) -> None:
        """Clear the local token and POST to the logout endpoint with it."""
        token, self.token = self.token, None
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        client = await self._get_client()
        try:
            response = await client.post(self.logout_endpoint, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "Server-side logout failed, local session already cleared",
                endpoint=self.logout_endpoint,
                error_type=type(e).__name__,
                error=str(e),
            )
            return
        logger.info("Server-side session cleared", endpoint=self.logout_endpoint)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

"""HTTP Client for shared connection management.

This module provides a managed httpx.AsyncClient reused by the token
manager, the upload engine and the lifecycle client.
"""

import httpx

from recording_upload.core.logging import get_logger

logger = get_logger(__name__)


class HTTPClient:
    """Managed HTTP client with connection reuse.

    Designed for DI injection. Create once at application startup,
    inject where needed, close at shutdown.

    Example:
        # In container setup
        http_client = HTTPClient()

        # In service
        response = await http_client.put(session_url, content=chunk)

        # At shutdown
        await http_client.close()
    """

    def __init__(
        self,
        timeout: float = 60.0,
        max_connections: int = 20,
        max_keepalive_connections: int = 10,
    ) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            max_connections: Maximum number of connections
            max_keepalive_connections: Maximum keepalive connections
        """
        # Redirects stay off: a resumable session answers 308 Resume Incomplete,
        # which must reach the caller instead of being followed.
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_keepalive_connections,
            ),
            follow_redirects=False,
        )
        logger.info(
            "HTTP client initialized",
            timeout=timeout,
            max_connections=max_connections,
            max_keepalive=max_keepalive_connections,
        )

    @property
    def is_closed(self) -> bool:
        """Whether the underlying client has been closed."""
        return self._client.is_closed

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """Send GET request."""
        return await self._client.get(url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        """Send POST request."""
        return await self._client.post(url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        """Send PUT request."""
        return await self._client.put(url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        """Send DELETE request."""
        return await self._client.delete(url, **kwargs)

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        await self._client.aclose()
        logger.info("HTTP client closed")


def extract_error_message(response: httpx.Response) -> str:
    """Pull the most useful error text out of a provider response.

    Understands both the OAuth shape (``error`` / ``error_description``) and
    the Google API shape (``{"error": {"message": ...}}``).

    Args:
        response: Non-successful response

    Returns:
        Error message, falling back to the reason phrase
    """
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if payload.get("error_description"):
            return str(payload["error_description"])
        if isinstance(error, str) and error:
            return error

    return response.reason_phrase or f"HTTP {response.status_code}"


__all__ = ["HTTPClient", "extract_error_message"]

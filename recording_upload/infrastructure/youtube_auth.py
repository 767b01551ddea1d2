"""YouTube OAuth token manager.

This module exchanges a stored refresh token for short-lived access tokens
and keeps the current token in memory for the lifetime of the process.

Token state is owned by one OAuthTokenManager instance. Every authenticated
request goes through ``ensure_valid_token()`` (or ``authorization_header()``),
which refreshes only when no token is cached or the cached one expired.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from recording_upload.core.config import Config
from recording_upload.core.exceptions import AuthError, ConfigurationError
from recording_upload.core.logging import get_logger
from recording_upload.infrastructure.http_client import HTTPClient, extract_error_message

logger = get_logger(__name__)

DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"

# Tokens are treated as expired this long before the provider says so
TOKEN_EXPIRY_MARGIN = timedelta(seconds=60)

# Used when the token response omits expires_in
DEFAULT_EXPIRES_IN = 3600


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class OAuthCredentials:
    """OAuth client credentials and the stored refresh token.

    Attributes:
        client_id: OAuth client ID
        client_secret: OAuth client secret
        refresh_token: Long-lived refresh token
    """

    client_id: str
    client_secret: str
    refresh_token: str

    @classmethod
    def from_config(cls, config: Config) -> "OAuthCredentials":
        """Build credentials from application config.

        Args:
            config: Application configuration

        Returns:
            Credentials (possibly incomplete; checked on first use)
        """
        return cls(
            client_id=config.youtube_client_id,
            client_secret=config.youtube_client_secret,
            refresh_token=config.youtube_refresh_token,
        )

    @property
    def missing_fields(self) -> list[str]:
        """Names of the credential fields that are empty."""
        return [
            name
            for name, value in (
                ("client_id", self.client_id),
                ("client_secret", self.client_secret),
                ("refresh_token", self.refresh_token),
            )
            if not value
        ]

    @property
    def is_complete(self) -> bool:
        """True when all three fields are present."""
        return not self.missing_fields


@dataclass
class AccessToken:
    """A bearer token and the moment it stops being usable.

    Attributes:
        access_token: Bearer token value
        expires_at: Expiry, already reduced by the safety margin
    """

    access_token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        """Check whether the token can still be used at ``now``."""
        return now < self.expires_at


class OAuthTokenManager:
    """OAuth 2.0 access token manager for the YouTube APIs.

    Concurrent refreshes are coalesced: tasks that find an expired token
    queue on a lock, and whoever gets it second sees the fresh token and
    skips the exchange.

    Example:
        >>> manager = OAuthTokenManager(credentials, http_client)
        >>> token = await manager.ensure_valid_token()
        >>> headers = await manager.authorization_header()
    """

    def __init__(
        self,
        credentials: OAuthCredentials,
        http_client: HTTPClient,
        token_url: str = DEFAULT_TOKEN_URL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize token manager.

        Args:
            credentials: OAuth client credentials and refresh token
            http_client: Shared HTTP client
            token_url: OAuth2 token endpoint
            clock: Returns the current UTC time (injectable for tests)
        """
        self.credentials = credentials
        self.http_client = http_client
        self.token_url = token_url
        self._clock = clock or _utcnow
        self._token: AccessToken | None = None
        self._refresh_lock = asyncio.Lock()

        logger.info(
            "OAuthTokenManager initialized",
            token_url=token_url,
            has_credentials=credentials.is_complete,
        )

    @property
    def token(self) -> AccessToken | None:
        """Currently cached token, if any."""
        return self._token

    @property
    def has_valid_token(self) -> bool:
        """True when a cached token exists and has not expired."""
        return self._token is not None and self._token.is_valid(self._clock())

    async def ensure_valid_token(self) -> str:
        """Return a usable access token, refreshing first if needed.

        Returns:
            Access token string

        Raises:
            ConfigurationError: If credentials are incomplete
            AuthError: If the provider rejects the exchange
        """
        if self._token is not None and self._token.is_valid(self._clock()):
            return self._token.access_token

        async with self._refresh_lock:
            # Another task may have refreshed while we waited
            if self._token is not None and self._token.is_valid(self._clock()):
                logger.debug("Reusing token refreshed by concurrent caller")
                return self._token.access_token
            return await self._exchange_refresh_token()

    async def refresh_access_token(self) -> str:
        """Unconditionally exchange the refresh token for a new access token.

        Returns:
            New access token string

        Raises:
            ConfigurationError: If credentials are incomplete
            AuthError: If the provider rejects the exchange
        """
        async with self._refresh_lock:
            return await self._exchange_refresh_token()

    async def authorization_header(self) -> dict[str, str]:
        """Bearer authorization header built from a valid token."""
        token = await self.ensure_valid_token()
        return {"Authorization": f"Bearer {token}"}

    def invalidate(self) -> None:
        """Forget the cached token so the next call refreshes."""
        if self._token is not None:
            logger.debug("Access token invalidated")
        self._token = None

    async def _exchange_refresh_token(self) -> str:
        missing = self.credentials.missing_fields
        if missing:
            raise ConfigurationError(missing=missing)

        try:
            response = await self.http_client.post(
                self.token_url,
                data={
                    "client_id": self.credentials.client_id,
                    "client_secret": self.credentials.client_secret,
                    "refresh_token": self.credentials.refresh_token,
                    "grant_type": "refresh_token",
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error("Token refresh request failed", error=str(e))
            raise AuthError(f"Token refresh request failed: {e}") from e

        if not response.is_success:
            message = extract_error_message(response)
            logger.error(
                "Token refresh rejected",
                status_code=response.status_code,
                error=message,
            )
            raise AuthError(
                f"Token refresh failed: {response.status_code} - {message}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(
                "Token response was not valid JSON", status_code=response.status_code
            ) from e

        access_token = payload.get("access_token")
        if not access_token:
            raise AuthError(
                "Token response did not include an access_token",
                status_code=response.status_code,
            )

        expires_in = int(payload.get("expires_in") or DEFAULT_EXPIRES_IN)
        expires_at = self._clock() + timedelta(seconds=expires_in) - TOKEN_EXPIRY_MARGIN
        self._token = AccessToken(access_token=access_token, expires_at=expires_at)

        logger.info("Access token refreshed", expires_at=expires_at.isoformat())
        return access_token

    def get_status(self) -> dict[str, Any]:
        """Get info about the token state.

        Returns:
            Dictionary with token state (without sensitive data)
        """
        return {
            "has_credentials": self.credentials.is_complete,
            "has_valid_token": self.has_valid_token,
            "token_expires_at": self._token.expires_at.isoformat() if self._token else None,
        }


__all__ = [
    "AccessToken",
    "DEFAULT_TOKEN_URL",
    "OAuthCredentials",
    "OAuthTokenManager",
    "TOKEN_EXPIRY_MARGIN",
]

"""Per-suite recording playlists.

PlaylistClient creates one private playlist per test suite and remembers it
in an in-process cache, so recordings of the same suite land together. Every
call is single-shot: a 401 refreshes the token and raises
RetryableAuthError, a 404 is a NotFound soft failure.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx

from recording_upload.config.video_upload import VideoUploadConfig
from recording_upload.core.exceptions import PlaylistError, RetryableAuthError
from recording_upload.core.logging import get_logger
from recording_upload.core.result import (
    DeletedPlaylist,
    Playlist,
    PlaylistDeletionResult,
    PlaylistItem,
    PlaylistItemResult,
    PlaylistListResult,
    PlaylistResult,
)
from recording_upload.infrastructure.http_client import HTTPClient, extract_error_message
from recording_upload.infrastructure.youtube_auth import OAuthTokenManager

logger = get_logger(__name__)

PLAYLIST_URL = "https://www.youtube.com/playlist?list={playlist_id}"

PLAYLIST_NOT_FOUND_MESSAGE = "Playlist not found"


def _require(value: str, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{name} must not be empty")
    return value


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class PlaylistClient:
    """Create, look up and clean up recording playlists.

    Holds the suite cache, so one instance is shared per process.

    Example:
        >>> playlists = PlaylistClient(token_manager, http_client)
        >>> result = await playlists.create_or_get_playlist("suite-42", "Checkout suite")
        >>> await playlists.add_video_to_playlist(result.data.playlist_id, "dQw4w9WgXcQ")
    """

    def __init__(
        self,
        token_manager: OAuthTokenManager,
        http_client: HTTPClient,
        config: VideoUploadConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize playlist client.

        Args:
            token_manager: Shared OAuth token manager
            http_client: Shared HTTP client
            config: Upload configuration (playlist section is used)
            clock: Returns the current UTC time (injectable for tests)
        """
        self.token_manager = token_manager
        self.http_client = http_client
        self.config = config or VideoUploadConfig()
        self._clock = clock or _utcnow
        self._cache: dict[str, Playlist] = {}

    @property
    def cached_suites(self) -> list[str]:
        """Suite IDs with a cached playlist."""
        return list(self._cache)

    async def create_or_get_playlist(
        self,
        suite_id: str,
        title: str = "",
        description: str = "",
    ) -> PlaylistResult:
        """Return the suite's playlist, creating it when needed.

        A cached playlist is verified first; one deleted on the provider side
        is dropped from the cache and recreated.

        Args:
            suite_id: Test suite identifier
            title: Playlist title (default from config)
            description: Playlist description (derived from the title if blank)

        Returns:
            PlaylistResult with the cached or created playlist

        Raises:
            ValueError: If suite_id is blank
            RetryableAuthError: On 401 (token already refreshed)
            PlaylistError: On any other non-2xx response or transport failure
        """
        suite_id = _require(suite_id, "suite_id")

        cached = await self._verified_cache_entry(suite_id)
        if cached is not None:
            return PlaylistResult.ok(cached)

        title = (title or "").strip() or self.config.playlists.default_title
        body = {
            "snippet": {
                "title": title,
                "description": description or f"Test recordings for {title}",
            },
            "status": {"privacyStatus": self.config.playlists.privacy_status},
        }

        logger.info("Creating playlist", suite_id=suite_id, title=title)
        response = await self._request(
            "post",
            self.config.playlists.playlists_url,
            action="create playlist",
            params={"part": "snippet,status"},
            json=body,
        )
        if not response.is_success:
            raise self._error("create playlist", response)

        resource = self._json(response)
        playlist_id = resource.get("id")
        if not playlist_id:
            raise PlaylistError(
                "Playlist response did not include an id", status_code=response.status_code
            )

        snippet = resource.get("snippet") or {}
        playlist = Playlist(
            playlist_id=playlist_id,
            title=snippet.get("title", title),
            description=snippet.get("description", body["snippet"]["description"]),
            url=PLAYLIST_URL.format(playlist_id=playlist_id),
            suite_id=suite_id,
            created_at=self._clock(),
        )
        self._cache[suite_id] = playlist

        logger.info("Playlist created", suite_id=suite_id, playlist_id=playlist_id)
        return PlaylistResult.ok(playlist)

    async def get_playlist(self, suite_id: str) -> PlaylistResult:
        """Return the cached playlist of a suite, if it still exists.

        Raises:
            ValueError: If suite_id is blank
            RetryableAuthError: On 401 (token already refreshed)
            PlaylistError: If verification failed unexpectedly
        """
        suite_id = _require(suite_id, "suite_id")
        cached = await self._verified_cache_entry(suite_id)
        if cached is None:
            return PlaylistResult.fail(PLAYLIST_NOT_FOUND_MESSAGE, code="NotFound", status_code=404)
        return PlaylistResult.ok(cached)

    async def verify_playlist_exists(self, playlist_id: str) -> bool:
        """Check whether the provider still has a playlist.

        Raises:
            ValueError: If playlist_id is blank
            RetryableAuthError: On 401 (token already refreshed)
            PlaylistError: On any non-2xx response other than 404
        """
        playlist_id = _require(playlist_id, "playlist_id")
        response = await self._request(
            "get",
            self.config.playlists.playlists_url,
            action="verify playlist",
            playlist_id=playlist_id,
            params={"part": "id", "id": playlist_id},
        )
        if response.status_code == 404:
            return False
        if not response.is_success:
            raise self._error("verify playlist", response, playlist_id=playlist_id)
        return bool(self._json(response).get("items"))

    async def list_playlists(self) -> PlaylistListResult:
        """List the channel's playlists (first page).

        Raises:
            RetryableAuthError: On 401 (token already refreshed)
            PlaylistError: On any other non-2xx response or transport failure
        """
        response = await self._request(
            "get",
            self.config.playlists.playlists_url,
            action="list playlists",
            params={
                "part": "snippet",
                "mine": "true",
                "maxResults": str(self.config.playlists.max_results),
            },
        )
        if not response.is_success:
            raise self._error("list playlists", response)

        playlists = []
        for item in self._json(response).get("items") or []:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            snippet = item.get("snippet") or {}
            playlists.append(
                Playlist(
                    playlist_id=item["id"],
                    title=snippet.get("title", ""),
                    description=snippet.get("description", ""),
                    url=PLAYLIST_URL.format(playlist_id=item["id"]),
                    created_at=snippet.get("publishedAt"),
                )
            )

        logger.debug("Listed playlists", count=len(playlists))
        return PlaylistListResult.ok(playlists)

    async def add_video_to_playlist(self, playlist_id: str, video_id: str) -> PlaylistItemResult:
        """Append an uploaded video to a playlist.

        Returns:
            PlaylistItemResult; ``error.code == "NotFound"`` on 404

        Raises:
            ValueError: If either ID is blank
            RetryableAuthError: On 401 (token already refreshed)
            PlaylistError: On any other non-2xx response or transport failure
        """
        playlist_id = _require(playlist_id, "playlist_id")
        video_id = _require(video_id, "video_id")

        response = await self._request(
            "post",
            self.config.playlists.playlist_items_url,
            action="add video to playlist",
            playlist_id=playlist_id,
            params={"part": "snippet"},
            json={
                "snippet": {
                    "playlistId": playlist_id,
                    "resourceId": {"kind": "youtube#video", "videoId": video_id},
                }
            },
        )
        if response.status_code == 404:
            return PlaylistItemResult.fail(
                "Playlist or video not found", code="NotFound", status_code=404
            )
        if not response.is_success:
            raise self._error("add video to playlist", response, playlist_id=playlist_id)

        resource = self._json(response)
        snippet = resource.get("snippet") or {}
        item = PlaylistItem(
            item_id=resource.get("id") or "",
            playlist_id=playlist_id,
            video_id=video_id,
            position=snippet.get("position"),
        )

        logger.info("Video added to playlist", playlist_id=playlist_id, video_id=video_id)
        return PlaylistItemResult.ok(item)

    async def delete_playlist(self, playlist_id: str) -> PlaylistDeletionResult:
        """Delete a playlist and forget any suite cached against it.

        Returns:
            PlaylistDeletionResult; ``error.code == "NotFound"`` on 404

        Raises:
            ValueError: If playlist_id is blank
            RetryableAuthError: On 401 (token already refreshed)
            PlaylistError: On any other non-2xx response or transport failure
        """
        playlist_id = _require(playlist_id, "playlist_id")

        response = await self._request(
            "delete",
            self.config.playlists.playlists_url,
            action="delete playlist",
            playlist_id=playlist_id,
            params={"id": playlist_id},
        )
        if response.status_code == 404:
            self._forget(playlist_id)
            return PlaylistDeletionResult.fail(
                PLAYLIST_NOT_FOUND_MESSAGE, code="NotFound", status_code=404
            )
        if not response.is_success:
            raise self._error("delete playlist", response, playlist_id=playlist_id)

        self._forget(playlist_id)
        logger.info("Playlist deleted", playlist_id=playlist_id)
        return PlaylistDeletionResult.ok(DeletedPlaylist(playlist_id=playlist_id))

    async def _verified_cache_entry(self, suite_id: str) -> Playlist | None:
        cached = self._cache.get(suite_id)
        if cached is None:
            return None
        if await self.verify_playlist_exists(cached.playlist_id):
            return cached
        logger.info("Cached playlist is gone", suite_id=suite_id, playlist_id=cached.playlist_id)
        del self._cache[suite_id]
        return None

    def _forget(self, playlist_id: str) -> None:
        for suite_id, playlist in list(self._cache.items()):
            if playlist.playlist_id == playlist_id:
                del self._cache[suite_id]

    async def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        playlist_id: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one authorized request; 401 refreshes and raises."""
        headers = await self.token_manager.authorization_header()
        send = getattr(self.http_client, method)

        try:
            response = await send(url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise PlaylistError(f"Failed to {action}: {e}", asset_id=playlist_id) from e

        if response.status_code == 401:
            logger.warning("Playlist call rejected with 401, refreshing token", action=action)
            await self.token_manager.refresh_access_token()
            raise RetryableAuthError(context={"action": action, "playlist_id": playlist_id})

        return response

    @staticmethod
    def _error(
        action: str, response: httpx.Response, playlist_id: str | None = None
    ) -> PlaylistError:
        message = extract_error_message(response)
        return PlaylistError(
            f"Failed to {action}: {response.status_code} - {message}",
            asset_id=playlist_id,
            status_code=response.status_code,
        )

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}


__all__ = ["PLAYLIST_NOT_FOUND_MESSAGE", "PLAYLIST_URL", "PlaylistClient"]

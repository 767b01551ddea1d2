"""Lifecycle operations on uploaded videos.

Single-shot delete and metadata update calls. A 401 refreshes the token
and raises RetryableAuthError; these calls are never retried automatically.
"""

import httpx

from recording_upload.config.video_upload import VideoUploadConfig
from recording_upload.core.exceptions import AssetUpdateError, DeletionError, RetryableAuthError
from recording_upload.core.logging import get_logger
from recording_upload.core.result import (
    DeletedAsset,
    DeletionResult,
    UpdatedAsset,
    UpdateResult,
)
from recording_upload.infrastructure.http_client import HTTPClient, extract_error_message
from recording_upload.infrastructure.youtube_api import (
    PRIVACY_STATUSES,
    UploadMetadata,
    build_video_body,
)
from recording_upload.infrastructure.youtube_auth import OAuthTokenManager

logger = get_logger(__name__)

NOT_FOUND_MESSAGE = "Video not found or already deleted"


def _require_asset_id(asset_id: str) -> str:
    asset_id = (asset_id or "").strip()
    if not asset_id:
        raise ValueError("asset_id must not be empty")
    return asset_id


class AssetLifecycleClient:
    """Delete and update videos that were already uploaded.

    Example:
        >>> lifecycle = AssetLifecycleClient(token_manager, http_client)
        >>> result = await lifecycle.delete_asset("dQw4w9WgXcQ")
        >>> result.success or result.error.code == "NotFound"
        True
    """

    def __init__(
        self,
        token_manager: OAuthTokenManager,
        http_client: HTTPClient,
        config: VideoUploadConfig | None = None,
    ) -> None:
        self.token_manager = token_manager
        self.http_client = http_client
        self.config = config or VideoUploadConfig()

    @property
    def videos_url(self) -> str:
        return self.config.resumable.videos_url

    async def delete_asset(self, asset_id: str) -> DeletionResult:
        """Delete a video.

        Deleting an already deleted video yields the NotFound soft failure,
        so repeated calls are safe.

        Args:
            asset_id: Provider video ID

        Returns:
            DeletionResult; ``error.code == "NotFound"`` on 404

        Raises:
            ValueError: If asset_id is blank
            RetryableAuthError: On 401 (token already refreshed)
            DeletionError: On any other non-2xx response or transport failure
        """
        asset_id = _require_asset_id(asset_id)
        headers = await self.token_manager.authorization_header()

        try:
            response = await self.http_client.delete(
                self.videos_url, params={"id": asset_id}, headers=headers
            )
        except httpx.HTTPError as e:
            raise DeletionError(f"Delete request failed: {e}", asset_id=asset_id) from e

        if response.status_code == 401:
            logger.warning("Delete rejected with 401, refreshing token", asset_id=asset_id)
            await self.token_manager.refresh_access_token()
            raise RetryableAuthError(context={"asset_id": asset_id})

        if response.status_code == 404:
            logger.info("Video already absent", asset_id=asset_id)
            return DeletionResult.fail(NOT_FOUND_MESSAGE, code="NotFound", status_code=404)

        if not response.is_success:
            message = extract_error_message(response)
            raise DeletionError(
                f"Failed to delete video: {response.status_code} - {message}",
                asset_id=asset_id,
                status_code=response.status_code,
            )

        logger.info("Video deleted", asset_id=asset_id)
        return DeletionResult.ok(DeletedAsset(asset_id=asset_id))

    async def update_asset_metadata(
        self,
        asset_id: str,
        metadata: UploadMetadata,
    ) -> UpdateResult:
        """Replace a video's snippet and status.

        Args:
            asset_id: Provider video ID
            metadata: New metadata; blank or unknown privacy and blank category
                fall back to defaults

        Returns:
            UpdateResult with the provider's video resource

        Raises:
            ValueError: If asset_id is blank
            RetryableAuthError: On 401 (token already refreshed)
            AssetUpdateError: On any other non-2xx response or transport failure
        """
        asset_id = _require_asset_id(asset_id)
        defaults = self.config.defaults

        privacy = (metadata.privacy_status or "").strip().lower()
        if privacy not in PRIVACY_STATUSES:
            if privacy:
                logger.warning("Unknown privacy status, using default", privacy=privacy)
            privacy = defaults.privacy_status

        body = build_video_body(
            UploadMetadata(
                title=metadata.title,
                description=metadata.description,
                tags=metadata.tags,
                privacy_status=privacy,
                category_id=metadata.category_id or defaults.category_id,
            )
        )
        body["id"] = asset_id

        headers = await self.token_manager.authorization_header()

        try:
            response = await self.http_client.put(
                self.videos_url,
                params={"part": "snippet,status"},
                json=body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise AssetUpdateError(f"Update request failed: {e}", asset_id=asset_id) from e

        if response.status_code == 401:
            logger.warning("Update rejected with 401, refreshing token", asset_id=asset_id)
            await self.token_manager.refresh_access_token()
            raise RetryableAuthError(context={"asset_id": asset_id})

        if response.status_code == 404:
            return UpdateResult.fail("Video not found", code="NotFound", status_code=404)

        if not response.is_success:
            message = extract_error_message(response)
            raise AssetUpdateError(
                f"Failed to update video: {response.status_code} - {message}",
                asset_id=asset_id,
                status_code=response.status_code,
            )

        try:
            resource = response.json()
        except ValueError:
            resource = None
        if not isinstance(resource, dict):
            resource = {}

        logger.info("Video metadata updated", asset_id=asset_id)
        return UpdateResult.ok(UpdatedAsset(asset_id=asset_id, resource=resource))


__all__ = ["AssetLifecycleClient", "NOT_FOUND_MESSAGE"]

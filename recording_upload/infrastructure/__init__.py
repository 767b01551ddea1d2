"""Infrastructure layer components.

This module provides the HTTP client, the OAuth token manager, the
resumable upload engine and the media probe used by the upload services.
"""

from recording_upload.infrastructure.http_client import HTTPClient
from recording_upload.infrastructure.youtube_api import ResumableUploadClient
from recording_upload.infrastructure.youtube_auth import OAuthTokenManager

__all__ = ["HTTPClient", "OAuthTokenManager", "ResumableUploadClient"]

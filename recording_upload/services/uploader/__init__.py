"""Recording upload services.

This module provides services for uploading and managing recordings:
- UploadOrchestrator: Whole-upload retries with exponential backoff
- AssetLifecycleClient: Delete and update already uploaded videos
- PlaylistClient: Per-suite recording playlists
"""

from recording_upload.services.uploader.lifecycle import AssetLifecycleClient
from recording_upload.services.uploader.orchestrator import UploadOrchestrator
from recording_upload.services.uploader.playlists import PlaylistClient
from recording_upload.services.uploader.progress import ProgressCallback, overall_progress

__all__ = [
    "AssetLifecycleClient",
    "PlaylistClient",
    "ProgressCallback",
    "UploadOrchestrator",
    "overall_progress",
]

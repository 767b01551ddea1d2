"""Typed configuration models for the upload pipeline."""

from recording_upload.config.video_upload import (
    PlaylistConfig,
    ResumableUploadConfig,
    RetryConfig,
    UploadDefaultsConfig,
    VideoUploadConfig,
)

__all__ = [
    "PlaylistConfig",
    "ResumableUploadConfig",
    "RetryConfig",
    "UploadDefaultsConfig",
    "VideoUploadConfig",
]

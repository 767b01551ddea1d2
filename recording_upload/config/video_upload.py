"""Video upload configuration models.

This module provides typed Pydantic configuration for recording uploads:
- Resumable transfer settings (chunk size, time budget)
- Retry/backoff policy
- Metadata defaults applied when the caller leaves fields blank
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

# Resumable sessions only accept chunk sizes in multiples of 256 KB
CHUNK_GRANULARITY_KB = 256


class ResumableUploadConfig(BaseModel):
    """Configuration for the resumable transfer.

    Attributes:
        chunk_size_kb: Size of each PUT body in KB (multiple of 256)
        upload_timeout_seconds: Time budget for one upload attempt
        initiation_url: Resumable session initiation endpoint
        videos_url: Video resource endpoint (delete/update)
    """

    chunk_size_kb: int = Field(
        default=CHUNK_GRANULARITY_KB, ge=CHUNK_GRANULARITY_KB, description="Chunk size in KB"
    )
    upload_timeout_seconds: float = Field(
        default=600.0, gt=0, le=3600, description="Time budget per upload attempt"
    )
    initiation_url: str = Field(
        default=(
            "https://www.googleapis.com/upload/youtube/v3/videos"
            "?uploadType=resumable&part=snippet,status"
        ),
        description="Resumable session initiation endpoint",
    )
    videos_url: str = Field(
        default="https://www.googleapis.com/youtube/v3/videos",
        description="Video resource endpoint",
    )

    @field_validator("chunk_size_kb")
    @classmethod
    def validate_chunk_granularity(cls, v: int) -> int:
        """Ensure chunk size is a multiple of 256 KB.

        Raises:
            ValueError: If not a multiple of 256
        """
        if v % CHUNK_GRANULARITY_KB != 0:
            raise ValueError(f"chunk_size_kb must be a multiple of {CHUNK_GRANULARITY_KB}")
        return v

    @property
    def chunk_size_bytes(self) -> int:
        """Chunk size in bytes."""
        return self.chunk_size_kb * 1024


class RetryConfig(BaseModel):
    """Retry policy for whole-upload attempts.

    Attributes:
        max_retries: Total attempts allowed
        backoff_base_seconds: Wait after the first failure; doubles each attempt
    """

    max_retries: int = Field(default=3, ge=1, le=10, description="Max upload attempts")
    backoff_base_seconds: float = Field(
        default=1.0, ge=0, le=60, description="Initial backoff delay"
    )


class UploadDefaultsConfig(BaseModel):
    """Defaults applied to metadata fields the caller left blank."""

    title_prefix: str = Field(default="Recording", description="Prefix of generated titles")
    description: str = Field(
        default="Screen recording uploaded from QA testing tool",
        description="Default description",
    )
    tags: list[str] = Field(
        default_factory=lambda: ["qa", "testing", "screen-recording"],
        description="Default tags",
    )
    category_id: str = Field(default="28", description="YouTube category ID (28=Science & Tech)")
    privacy_status: Literal["public", "private", "unlisted"] = Field(
        default="private", description="Default privacy status"
    )


class PlaylistConfig(BaseModel):
    """Configuration for per-suite recording playlists.

    Attributes:
        playlists_url: Playlist resource endpoint
        playlist_items_url: Playlist item resource endpoint
        privacy_status: Privacy of created playlists
        default_title: Title used when the caller gives none
        max_results: Page size when listing playlists
    """

    playlists_url: str = Field(
        default="https://www.googleapis.com/youtube/v3/playlists",
        description="Playlist resource endpoint",
    )
    playlist_items_url: str = Field(
        default="https://www.googleapis.com/youtube/v3/playlistItems",
        description="Playlist item resource endpoint",
    )
    privacy_status: Literal["public", "private", "unlisted"] = Field(
        default="private", description="Privacy of created playlists"
    )
    default_title: str = Field(default="QA Screen Recordings", description="Fallback title")
    max_results: int = Field(default=50, ge=1, le=50, description="Listing page size")


class VideoUploadConfig(BaseModel):
    """Complete video upload configuration.

    All sub-configs have defaults and can be used without explicit configuration.

    Attributes:
        resumable: Resumable transfer configuration
        retry: Retry policy
        defaults: Metadata defaults
        playlists: Playlist settings
    """

    resumable: ResumableUploadConfig = Field(default_factory=ResumableUploadConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    defaults: UploadDefaultsConfig = Field(default_factory=UploadDefaultsConfig)
    playlists: PlaylistConfig = Field(default_factory=PlaylistConfig)


__all__ = [
    "CHUNK_GRANULARITY_KB",
    "PlaylistConfig",
    "ResumableUploadConfig",
    "RetryConfig",
    "UploadDefaultsConfig",
    "VideoUploadConfig",
]

"""Tests for video upload configuration models."""

import pytest
from pydantic import ValidationError

from recording_upload.config import (
    PlaylistConfig,
    ResumableUploadConfig,
    RetryConfig,
    UploadDefaultsConfig,
    VideoUploadConfig,
)


class TestResumableUploadConfig:
    """Tests for ResumableUploadConfig."""

    def test_defaults(self):
        """Test default chunk size and time budget."""
        config = ResumableUploadConfig()

        assert config.chunk_size_kb == 256
        assert config.chunk_size_bytes == 262144
        assert config.upload_timeout_seconds == 600.0
        assert "default_content_type" not in ResumableUploadConfig.model_fields
        assert "uploadType=resumable" in config.initiation_url
        assert "part=snippet,status" in config.initiation_url

    def test_chunk_size_multiple_of_256(self):
        """Test larger chunk sizes in 256 KB steps are accepted."""
        config = ResumableUploadConfig(chunk_size_kb=1024)
        assert config.chunk_size_bytes == 1024 * 1024

    @pytest.mark.parametrize("size", [100, 300, 0])
    def test_chunk_size_rejects_other_values(self, size):
        """Test chunk sizes that are not multiples of 256 KB."""
        with pytest.raises(ValidationError):
            ResumableUploadConfig(chunk_size_kb=size)

    def test_timeout_must_be_positive(self):
        """Test the time budget must be positive."""
        with pytest.raises(ValidationError):
            ResumableUploadConfig(upload_timeout_seconds=0)


class TestRetryConfig:
    """Tests for RetryConfig."""

    def test_defaults(self):
        """Test default retry policy."""
        config = RetryConfig()
        assert config.max_retries == 3
        assert config.backoff_base_seconds == 1.0

    def test_at_least_one_attempt(self):
        """Test max_retries lower bound."""
        with pytest.raises(ValidationError):
            RetryConfig(max_retries=0)


class TestUploadDefaultsConfig:
    """Tests for UploadDefaultsConfig."""

    def test_defaults(self):
        """Test metadata defaults."""
        config = UploadDefaultsConfig()

        assert config.description == "Screen recording uploaded from QA testing tool"
        assert config.tags == ["qa", "testing", "screen-recording"]
        assert config.category_id == "28"
        assert config.privacy_status == "private"

    def test_invalid_privacy(self):
        """Test privacy must be a known status."""
        with pytest.raises(ValidationError):
            UploadDefaultsConfig(privacy_status="secret")


def test_video_upload_config_composes_sections():
    """Test the aggregate config builds every section."""
    config = VideoUploadConfig()

    assert isinstance(config.resumable, ResumableUploadConfig)
    assert isinstance(config.retry, RetryConfig)
    assert isinstance(config.defaults, UploadDefaultsConfig)
    assert isinstance(config.playlists, PlaylistConfig)


class TestPlaylistConfig:
    """Tests for PlaylistConfig."""

    def test_defaults(self):
        config = PlaylistConfig()

        assert config.playlists_url == "https://www.googleapis.com/youtube/v3/playlists"
        assert config.playlist_items_url == "https://www.googleapis.com/youtube/v3/playlistItems"
        assert config.privacy_status == "private"
        assert config.default_title == "QA Screen Recordings"
        assert config.max_results == 50

    def test_max_results_capped_at_api_limit(self):
        with pytest.raises(ValidationError):
            PlaylistConfig(max_results=51)

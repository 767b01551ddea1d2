"""Result types shared by upload and lifecycle operations.

Every public upload/lifecycle operation answers with an OperationResult:
either ``success=True`` with ``data``, or ``success=False`` with an
ErrorDetail. Exceptions are converted at the component boundary with
``OperationResult.from_exception``.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Caller-facing description of a failure.

    Attributes:
        message: Human readable message
        code: Error kind, usually the exception class name
        status_code: HTTP status returned by the provider, if any
        offset: Byte offset of a failed chunk, if any
        last_error: Underlying error when this one aggregates several attempts
    """

    message: str
    code: str = "UploadError"
    status_code: int | None = None
    offset: int | None = None
    last_error: "ErrorDetail | None" = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorDetail":
        """Build an ErrorDetail from an exception, keeping status and offset."""
        return cls(
            message=str(exc) or exc.__class__.__name__,
            code=exc.__class__.__name__,
            status_code=getattr(exc, "status_code", None),
            offset=getattr(exc, "offset", None),
        )


class OperationResult(BaseModel, Generic[T]):
    """Discriminated success/failure result.

    Example:
        >>> UploadResult.ok(asset).success
        True
        >>> UploadResult.fail("boom", code="ChunkUploadError").error.code
        'ChunkUploadError'
    """

    success: bool
    data: T | None = None
    error: ErrorDetail | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "OperationResult[T]":
        """Successful result carrying ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        code: str = "UploadError",
        **details: Any,
    ) -> "OperationResult[T]":
        """Failed result with an ErrorDetail built from ``message`` and ``details``."""
        return cls(success=False, error=ErrorDetail(message=message, code=code, **details))

    @classmethod
    def from_exception(cls, exc: BaseException) -> "OperationResult[T]":
        """Failed result describing ``exc``."""
        return cls(success=False, error=ErrorDetail.from_exception(exc))


class UploadedAsset(BaseModel):
    """Descriptor of a video stored on the host.

    Attributes:
        asset_id: Provider video ID
        url: Watch URL
        embed_url: Embeddable player URL
        thumbnail_url: Default thumbnail URL, when the provider returned one
        title: Title as stored by the provider
        description: Description as stored by the provider
        privacy_status: Effective privacy status
        duration: Probed duration in seconds (0 when unknown)
        uploaded_at: Completion timestamp (UTC)
    """

    asset_id: str
    url: str
    embed_url: str
    thumbnail_url: str | None = None
    title: str = ""
    description: str = ""
    privacy_status: str = "private"
    duration: float = 0.0
    uploaded_at: datetime


class DeletedAsset(BaseModel):
    """Confirmation of a deleted video."""

    asset_id: str
    message: str = "Video deleted successfully"


class UpdatedAsset(BaseModel):
    """Provider response after a metadata update."""

    asset_id: str
    resource: dict[str, Any] = Field(default_factory=dict)


class Playlist(BaseModel):
    """Playlist grouping the recordings of one test suite.

    Attributes:
        playlist_id: Provider playlist ID
        title: Playlist title
        description: Playlist description
        url: Public playlist URL
        suite_id: Test suite the playlist was created for, if any
        created_at: Creation (or publish) timestamp
    """

    playlist_id: str
    title: str = ""
    description: str = ""
    url: str
    suite_id: str | None = None
    created_at: datetime | None = None


class PlaylistItem(BaseModel):
    """A video placed in a playlist."""

    item_id: str
    playlist_id: str
    video_id: str
    position: int | None = None


class DeletedPlaylist(BaseModel):
    """Confirmation of a deleted playlist."""

    playlist_id: str
    message: str = "Playlist deleted successfully"


UploadResult = OperationResult[UploadedAsset]
DeletionResult = OperationResult[DeletedAsset]
UpdateResult = OperationResult[UpdatedAsset]
PlaylistResult = OperationResult[Playlist]
PlaylistListResult = OperationResult[list[Playlist]]
PlaylistItemResult = OperationResult[PlaylistItem]
PlaylistDeletionResult = OperationResult[DeletedPlaylist]

__all__ = [
    "DeletedAsset",
    "DeletedPlaylist",
    "DeletionResult",
    "ErrorDetail",
    "OperationResult",
    "Playlist",
    "PlaylistDeletionResult",
    "PlaylistItem",
    "PlaylistItemResult",
    "PlaylistListResult",
    "PlaylistResult",
    "UpdateResult",
    "UpdatedAsset",
    "UploadResult",
    "UploadedAsset",
]

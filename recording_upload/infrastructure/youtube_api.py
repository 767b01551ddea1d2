"""YouTube resumable upload client.

This module implements the resumable upload protocol over the shared HTTP
client: a JSON POST opens an upload session, then the payload is sent in
fixed-size chunks with sequential PUT requests carrying ``Content-Range``.

One call to ``upload_video`` is one attempt. Sessions are never resumed
across attempts; retrying is the orchestrator's job.
"""

import asyncio
import mimetypes
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import httpx

from recording_upload.config.video_upload import VideoUploadConfig
from recording_upload.core.exceptions import (
    AuthError,
    BlobValidationError,
    ChunkUploadError,
    InitiationError,
    TokenExpiredDuringUploadError,
    UploadCancelledError,
    UploadError,
    UploadTimeoutError,
)
from recording_upload.core.logging import get_logger
from recording_upload.core.result import UploadedAsset, UploadResult
from recording_upload.core.state_machine import (
    StateMachine,
    UploadAttemptState,
    create_upload_attempt_state_machine,
)
from recording_upload.infrastructure.http_client import HTTPClient, extract_error_message
from recording_upload.infrastructure.youtube_auth import OAuthTokenManager

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "video/webm"

PRIVACY_STATUSES = ("public", "unlisted", "private")

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
EMBED_URL = "https://www.youtube.com/embed/{video_id}"

# Called with (uploaded_bytes, total_size) after every accepted chunk
ChunkCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class VideoBlob:
    """Read-only video payload.

    Attributes:
        data: Raw bytes
        content_type: Declared MIME type
    """

    data: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    def __post_init__(self) -> None:
        if not self.content_type:
            object.__setattr__(self, "content_type", DEFAULT_CONTENT_TYPE)

    @property
    def size(self) -> int:
        """Total payload size in bytes."""
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path | str, content_type: str | None = None) -> "VideoBlob":
        """Load a payload from disk, guessing the content type from the suffix.

        Args:
            path: Video file path
            content_type: Explicit content type (overrides the guess)

        Returns:
            VideoBlob with the file's bytes
        """
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(data=path.read_bytes(), content_type=content_type or guessed or "")


@dataclass
class UploadMetadata:
    """Metadata for a recording upload.

    Blank fields are filled from UploadDefaultsConfig when the upload starts.

    Attributes:
        title: Video title (max 100 chars)
        description: Video description (max 5000 chars)
        tags: Video tags; None means "use defaults"
        privacy_status: public, unlisted or private (case-insensitive)
        category_id: YouTube category ID
        duration: Probed duration in seconds
    """

    title: str = ""
    description: str = ""
    tags: list[str] | None = None
    privacy_status: str = ""
    category_id: str = ""
    duration: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UploadMetadata":
        """Build metadata from a loosely-typed mapping.

        Accepts both snake_case keys and the camelCase keys sent by the web
        client (``privacy``, ``privacyStatus``, ``categoryId``).
        """
        tags = data.get("tags")
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            tags=[str(t) for t in tags] if isinstance(tags, list) else None,
            privacy_status=str(
                data.get("privacy_status") or data.get("privacyStatus") or data.get("privacy") or ""
            ),
            category_id=str(data.get("category_id") or data.get("categoryId") or ""),
        )


@dataclass
class UploadSession:
    """In-memory state of one resumable session.

    Attributes:
        upload_url: Session URL returned by the initiation request
        total_size: Payload size in bytes
        uploaded_bytes: Bytes confirmed by the server so far
    """

    upload_url: str
    total_size: int
    uploaded_bytes: int = 0


@dataclass(frozen=True)
class ChunkRange:
    """Half-open byte range ``[start, end)`` of one chunk."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def content_range(self, total_size: int) -> str:
        """Render the Content-Range header value (inclusive end)."""
        return f"bytes {self.start}-{self.end - 1}/{total_size}"


def iter_chunk_ranges(total_size: int, chunk_size: int) -> Iterator[ChunkRange]:
    """Split ``[0, total_size)`` into consecutive chunk ranges.

    Args:
        total_size: Payload size in bytes
        chunk_size: Maximum chunk size in bytes

    Yields:
        ChunkRange covering the payload exactly once, in order

    Raises:
        ValueError: If chunk_size is not positive
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    for start in range(0, total_size, chunk_size):
        yield ChunkRange(start=start, end=min(start + chunk_size, total_size))


def build_video_body(metadata: UploadMetadata) -> dict[str, Any]:
    """Build request body for video insert/update.

    Args:
        metadata: Finalized video metadata

    Returns:
        Request body dictionary
    """
    return {
        "snippet": {
            "title": metadata.title[:100],  # YouTube limit
            "description": metadata.description[:5000],  # YouTube limit
            "tags": (metadata.tags or [])[:500],
            "categoryId": metadata.category_id,
        },
        "status": {
            "privacyStatus": metadata.privacy_status,
            "selfDeclaredMadeForKids": False,
        },
    }


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ResumableUploadClient:
    """YouTube resumable upload engine.

    Example:
        >>> client = ResumableUploadClient(token_manager, http_client)
        >>> result = await client.upload_video(
        ...     VideoBlob(data=payload, content_type="video/webm"),
        ...     UploadMetadata(title="Login flow regression"),
        ... )
        >>> if result.success:
        ...     print(result.data.url)
    """

    def __init__(
        self,
        token_manager: OAuthTokenManager,
        http_client: HTTPClient,
        config: VideoUploadConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize upload client.

        Args:
            token_manager: Shared OAuth token manager
            http_client: Shared HTTP client
            config: Upload configuration
            clock: Returns the current UTC time (injectable for tests)
        """
        self.token_manager = token_manager
        self.http_client = http_client
        self.config = config or VideoUploadConfig()
        self._clock = clock or _utcnow

        logger.info(
            "ResumableUploadClient initialized",
            chunk_size=self.chunk_size,
            timeout_seconds=self.config.resumable.upload_timeout_seconds,
        )

    @property
    def chunk_size(self) -> int:
        """Chunk size in bytes."""
        return self.config.resumable.chunk_size_bytes

    def finalize_metadata(self, metadata: UploadMetadata) -> UploadMetadata:
        """Apply defaults and normalize privacy.

        Args:
            metadata: Caller-supplied metadata

        Returns:
            New metadata with every field populated
        """
        defaults = self.config.defaults

        privacy = (metadata.privacy_status or "").strip().lower()
        if privacy not in PRIVACY_STATUSES:
            if privacy:
                logger.warning("Unknown privacy status, using default", privacy=privacy)
            privacy = defaults.privacy_status

        title = (metadata.title or "").strip()
        if not title:
            title = f"{defaults.title_prefix} - {self._clock().date().isoformat()}"

        return UploadMetadata(
            title=title,
            description=metadata.description or defaults.description,
            tags=list(metadata.tags) if metadata.tags is not None else list(defaults.tags),
            privacy_status=privacy,
            category_id=metadata.category_id or defaults.category_id,
            duration=metadata.duration,
        )

    async def upload_video(
        self,
        blob: VideoBlob,
        metadata: UploadMetadata,
        *,
        on_chunk: ChunkCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> UploadResult:
        """Upload a video in one resumable attempt.

        Args:
            blob: Video payload
            metadata: Caller metadata (defaults applied here)
            on_chunk: Checkpoint callback after each accepted chunk
            cancel_event: Checked before each chunk; set it to abort
            timeout: Time budget in seconds (default from config)

        Returns:
            UploadResult describing the asset or the failure

        Raises:
            ConfigurationError: If credentials are missing (before any request)
        """
        attempt = create_upload_attempt_state_machine()
        attempt.transition(UploadAttemptState.TOKEN_CHECK)

        try:
            await self.token_manager.ensure_valid_token()
        except AuthError as e:
            attempt.transition(UploadAttemptState.FAILED)
            logger.error("Upload aborted: token unavailable", error=str(e))
            return UploadResult.from_exception(e)

        final_metadata = self.finalize_metadata(metadata)
        budget = timeout or self.config.resumable.upload_timeout_seconds

        try:
            async with asyncio.timeout(budget):
                asset = await self.perform_resumable_upload(
                    blob,
                    final_metadata,
                    on_chunk=on_chunk,
                    cancel_event=cancel_event,
                    attempt=attempt,
                )
        except (UploadError, AuthError) as e:
            logger.error(
                "Upload attempt failed",
                error_type=e.__class__.__name__,
                error=str(e),
                state=attempt.current.value,
            )
            return UploadResult.from_exception(e)
        except TimeoutError:
            if not attempt.is_terminal:
                attempt.transition(UploadAttemptState.FAILED)
            logger.error("Upload attempt timed out", timeout_seconds=budget)
            return UploadResult.from_exception(
                UploadTimeoutError(
                    f"Upload timed out after {budget:g} seconds", timeout_seconds=budget
                )
            )

        return UploadResult.ok(asset)

    async def initiate_resumable_upload(self, blob: VideoBlob, metadata: UploadMetadata) -> str:
        """Open a resumable upload session.

        Args:
            blob: Video payload (only size and type are sent)
            metadata: Finalized metadata

        Returns:
            Session URL from the ``Location`` header

        Raises:
            InitiationError: On non-2xx response or missing Location header
            UploadTimeoutError: If the request timed out
        """
        headers = {
            **(await self.token_manager.authorization_header()),
            "Content-Type": "application/json; charset=UTF-8",
            "X-Upload-Content-Length": str(blob.size),
            "X-Upload-Content-Type": blob.content_type,
        }

        try:
            response = await self.http_client.post(
                self.config.resumable.initiation_url,
                json=build_video_body(metadata),
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise UploadTimeoutError("Upload initiation timed out") from e
        except httpx.HTTPError as e:
            raise InitiationError(f"Failed to initiate resumable upload: {e}") from e

        if not response.is_success:
            if response.status_code == 401:
                # Force a refresh on the next attempt
                self.token_manager.invalidate()
            message = extract_error_message(response)
            raise InitiationError(
                f"Failed to initiate resumable upload: {response.status_code} - {message}",
                status_code=response.status_code,
            )

        upload_url = response.headers.get("location")
        if not upload_url:
            raise InitiationError(
                "No upload URL received from YouTube API",
                status_code=response.status_code,
            )

        logger.debug("Resumable session created", total_size=blob.size)
        return upload_url

    async def perform_resumable_upload(
        self,
        blob: VideoBlob,
        metadata: UploadMetadata,
        *,
        on_chunk: ChunkCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        attempt: StateMachine[UploadAttemptState] | None = None,
    ) -> UploadedAsset:
        """Create a session and transfer the payload chunk by chunk.

        Args:
            blob: Video payload
            metadata: Finalized metadata
            on_chunk: Checkpoint callback after each accepted chunk
            cancel_event: Checked before each chunk; set it to abort
            attempt: Attempt state machine (a fresh one if omitted)

        Returns:
            Descriptor of the stored video

        Raises:
            BlobValidationError: If the payload is empty
            InitiationError: If the session could not be created
            TokenExpiredDuringUploadError: On 401 during transfer
            ChunkUploadError: On any other unexpected chunk response
            UploadCancelledError: If cancel_event was set
            UploadTimeoutError: If a request timed out
        """
        if attempt is None:
            attempt = create_upload_attempt_state_machine(UploadAttemptState.TOKEN_CHECK.value)

        if blob.size == 0:
            attempt.transition(UploadAttemptState.FAILED)
            raise BlobValidationError("Cannot upload an empty video payload")

        attempt.transition(UploadAttemptState.INITIATING)
        try:
            upload_url = await self.initiate_resumable_upload(blob, metadata)
        except InitiationError as e:
            if e.status_code == 401:
                attempt.transition(UploadAttemptState.AUTH_EXPIRED)
            else:
                attempt.transition(UploadAttemptState.FAILED)
            raise
        except (UploadError, AuthError):
            attempt.transition(UploadAttemptState.FAILED)
            raise

        session = UploadSession(upload_url=upload_url, total_size=blob.size)
        attempt.transition(UploadAttemptState.TRANSFERRING)

        logger.info(
            "Starting chunked transfer",
            title=metadata.title[:50],
            total_size=session.total_size,
            chunk_size=self.chunk_size,
        )

        try:
            for chunk in iter_chunk_ranges(session.total_size, self.chunk_size):
                if cancel_event is not None and cancel_event.is_set():
                    raise UploadCancelledError(offset=session.uploaded_bytes)

                asset = await self._send_chunk(session, chunk, blob, metadata)
                if asset is not None:
                    attempt.transition(UploadAttemptState.SUCCESS)
                    logger.info(
                        "Video uploaded successfully",
                        asset_id=asset.asset_id,
                        total_size=session.total_size,
                    )
                    return asset

                session.uploaded_bytes = chunk.end
                attempt.transition(UploadAttemptState.TRANSFERRING)
                if on_chunk is not None:
                    on_chunk(session.uploaded_bytes, session.total_size)

            raise ChunkUploadError(
                "Upload ended without a completion response",
                offset=session.uploaded_bytes,
            )
        except TokenExpiredDuringUploadError:
            attempt.transition(UploadAttemptState.AUTH_EXPIRED)
            raise
        except (UploadError, AuthError):
            attempt.transition(UploadAttemptState.FAILED)
            raise

    async def _send_chunk(
        self,
        session: UploadSession,
        chunk: ChunkRange,
        blob: VideoBlob,
        metadata: UploadMetadata,
    ) -> UploadedAsset | None:
        """PUT one chunk. Returns the asset on completion, None on 308."""
        headers = {
            **(await self.token_manager.authorization_header()),
            "Content-Length": str(chunk.length),
            "Content-Range": chunk.content_range(session.total_size),
            "Content-Type": blob.content_type,
        }

        try:
            response = await self.http_client.put(
                session.upload_url,
                content=blob.data[chunk.start : chunk.end],
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise UploadTimeoutError(
                f"Chunk request timed out at byte {chunk.start}", offset=chunk.start
            ) from e
        except httpx.HTTPError as e:
            raise ChunkUploadError(
                f"Upload failed at byte {chunk.start}: {e}", offset=chunk.start
            ) from e

        status = response.status_code

        if status == 308:
            logger.debug("Chunk accepted", offset=chunk.end, total=session.total_size)
            return None

        if status in (200, 201):
            try:
                resource = response.json()
            except ValueError as e:
                raise ChunkUploadError(
                    "Completion response was not valid JSON",
                    offset=chunk.start,
                    status_code=status,
                ) from e
            return self._parse_asset(resource, metadata, offset=chunk.start)

        if status == 401:
            logger.warning("Access token rejected mid-transfer", offset=chunk.start)
            await self.token_manager.refresh_access_token()
            raise TokenExpiredDuringUploadError(
                f"Access token expired during upload at byte {chunk.start}",
                offset=chunk.start,
            )

        message = extract_error_message(response)
        raise ChunkUploadError(
            f"Upload failed at byte {chunk.start}: {status} - {message}",
            offset=chunk.start,
            status_code=status,
        )

    def _parse_asset(
        self,
        resource: dict[str, Any],
        metadata: UploadMetadata,
        offset: int,
    ) -> UploadedAsset:
        """Map the provider's video resource to an UploadedAsset."""
        video_id = resource.get("id") if isinstance(resource, dict) else None
        if not video_id:
            raise ChunkUploadError("Completion response did not include a video id", offset=offset)

        snippet = resource.get("snippet") or {}
        status = resource.get("status") or {}
        default_thumbnail = (snippet.get("thumbnails") or {}).get("default") or {}

        return UploadedAsset(
            asset_id=video_id,
            url=WATCH_URL.format(video_id=video_id),
            embed_url=EMBED_URL.format(video_id=video_id),
            thumbnail_url=default_thumbnail.get("url"),
            title=snippet.get("title", metadata.title),
            description=snippet.get("description", metadata.description),
            privacy_status=status.get("privacyStatus", metadata.privacy_status),
            duration=metadata.duration,
            uploaded_at=self._clock(),
        )


__all__ = [
    "ChunkCallback",
    "ChunkRange",
    "DEFAULT_CONTENT_TYPE",
    "PRIVACY_STATUSES",
    "ResumableUploadClient",
    "UploadMetadata",
    "UploadSession",
    "VideoBlob",
    "build_video_body",
    "iter_chunk_ranges",
]

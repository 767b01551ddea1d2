"""Upload orchestration with whole-upload retries.

This module provides the UploadOrchestrator service: it probes the
recording once, then runs up to N resumable attempts through the
ResumableUploadClient with exponential backoff between them.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import replace

from recording_upload.config.video_upload import VideoUploadConfig
from recording_upload.core.exceptions import BlobValidationError, UploadCancelledError
from recording_upload.core.logging import bind_upload_context, get_logger
from recording_upload.core.result import UploadResult
from recording_upload.infrastructure.media_probe import probe_duration
from recording_upload.infrastructure.youtube_api import (
    ResumableUploadClient,
    UploadMetadata,
    VideoBlob,
)
from recording_upload.services.uploader.progress import ProgressCallback, ProgressReporter

logger = get_logger(__name__)

DurationProbe = Callable[[bytes, str], Awaitable[float]]
SleepFunc = Callable[[float], Awaitable[None]]

CANCELLED_CODE = UploadCancelledError.__name__


class UploadOrchestrator:
    """Retry whole uploads with exponential backoff.

    Every attempt opens a fresh resumable session; a failed session is
    never resumed. The orchestrator holds no state between calls.

    Example:
        >>> orchestrator = UploadOrchestrator(upload_client)
        >>> result = await orchestrator.upload_with_retry(
        ...     blob,
        ...     UploadMetadata(title="Checkout bug"),
        ...     on_progress=lambda pct: print(f"{pct:.0f}%"),
        ... )
    """

    def __init__(
        self,
        upload_client: ResumableUploadClient,
        config: VideoUploadConfig | None = None,
        probe: DurationProbe | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            upload_client: Resumable upload engine
            config: Upload configuration (retry policy)
            probe: Async duration probe (default: ffprobe)
            sleep: Async sleep used for backoff (injectable for tests)
        """
        self.upload_client = upload_client
        self.config = config or VideoUploadConfig()
        self._probe = probe or probe_duration
        self._sleep = sleep or asyncio.sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay after failed attempt ``attempt`` (1-based)."""
        return self.config.retry.backoff_base_seconds * 2 ** (attempt - 1)

    async def upload_with_retry(
        self,
        blob: VideoBlob,
        metadata: UploadMetadata,
        on_progress: ProgressCallback | None = None,
        max_retries: int | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> UploadResult:
        """Upload a recording, retrying failed attempts.

        Args:
            blob: Video payload
            metadata: Caller metadata
            on_progress: Receives overall progress in percent
            max_retries: Total attempts (default from config)
            cancel_event: Set to stop the upload; cancelled uploads are not retried
            timeout: Time budget per attempt in seconds

        Returns:
            The first successful attempt's result, the cancellation result,
            or a RetriesExhausted failure carrying the last attempt's error

        Raises:
            ConfigurationError: If credentials are missing
        """
        attempts = max_retries if max_retries is not None else self.config.retry.max_retries
        if attempts < 1:
            raise ValueError("max_retries must be at least 1")

        if blob.size == 0:
            logger.warning("Rejected empty recording")
            return UploadResult.from_exception(
                BlobValidationError("Cannot upload an empty video payload")
            )

        with bind_upload_context(size=blob.size):
            return await self._run_attempts(
                blob, metadata, on_progress, attempts, cancel_event, timeout
            )

    async def _run_attempts(
        self,
        blob: VideoBlob,
        metadata: UploadMetadata,
        on_progress: ProgressCallback | None,
        attempts: int,
        cancel_event: asyncio.Event | None,
        timeout: float | None,
    ) -> UploadResult:
        duration = await self._probe(blob.data, blob.content_type)
        metadata = replace(
            metadata,
            privacy_status=(metadata.privacy_status or "").strip().lower(),
            duration=duration,
        )

        logger.info(
            "Starting upload with retry",
            title=metadata.title[:50],
            duration_seconds=duration,
            max_attempts=attempts,
        )

        last_error = None
        for attempt in range(1, attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Upload cancelled before attempt", attempt=attempt)
                return UploadResult.from_exception(UploadCancelledError())

            reporter = ProgressReporter(on_progress, attempt, attempts)
            logger.info("Upload attempt", attempt=attempt, max_attempts=attempts)

            result = await self.upload_client.upload_video(
                blob,
                metadata,
                on_chunk=reporter.on_chunk,
                cancel_event=cancel_event,
                timeout=timeout,
            )

            if result.success:
                reporter.report(100.0)
                logger.info(
                    "Upload succeeded",
                    attempt=attempt,
                    asset_id=result.data.asset_id if result.data else None,
                )
                return result

            last_error = result.error
            if last_error is not None and last_error.code == CANCELLED_CODE:
                logger.info("Upload cancelled", attempt=attempt, offset=last_error.offset)
                return result

            if attempt < attempts:
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Upload attempt failed, retrying",
                    attempt=attempt,
                    error=last_error.message if last_error else None,
                    delay_seconds=delay,
                )
                await self._sleep(delay)

        logger.error(
            "All upload attempts failed",
            max_attempts=attempts,
            last_error=last_error.message if last_error else None,
        )
        return UploadResult.fail(
            f"All {attempts} upload attempts failed",
            code="RetriesExhausted",
            last_error=last_error,
        )


__all__ = ["UploadOrchestrator"]

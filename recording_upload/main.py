"""FastAPI application entry point.

This module creates and configures the FastAPI application instance and
exposes the recording upload, status, delete and playlist endpoints.
"""

import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, File, Form, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from recording_upload.core.config import get_config
from recording_upload.core.container import (
    container,
    get_asset_lifecycle,
    get_playlist_client,
    get_token_manager,
    get_upload_orchestrator,
)
from recording_upload.core.exceptions import (
    AssetError,
    AuthError,
    ConfigurationError,
    RetryableAuthError,
)
from recording_upload.core.logging import get_logger, setup_logging
from recording_upload.core.result import (
    DeletionResult,
    OperationResult,
    PlaylistDeletionResult,
    PlaylistItemResult,
    PlaylistListResult,
    PlaylistResult,
    UploadResult,
)
from recording_upload.infrastructure.youtube_api import UploadMetadata, VideoBlob
from recording_upload.infrastructure.youtube_auth import OAuthTokenManager
from recording_upload.services.uploader.lifecycle import AssetLifecycleClient
from recording_upload.services.uploader.orchestrator import UploadOrchestrator
from recording_upload.services.uploader.playlists import PlaylistClient

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events.

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    config = get_config()
    logger.info("Starting recording upload service", env=config.app_env)
    if not config.has_youtube_credentials:
        logger.warning("YouTube credentials are not configured; uploads will fail")

    yield

    logger.info("Shutting down recording upload service")
    http_client = container.http_client()
    if not http_client.is_closed:
        await http_client.close()
    logger.info("Cleanup complete")


# Create FastAPI application
_config = get_config()
app = FastAPI(
    title=_config.app_name,
    description="Resumable YouTube uploads for QA screen recordings",
    version="0.1.0",
    docs_url="/docs" if _config.is_development else None,
    redoc_url="/redoc" if _config.is_development else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_config.cors_origins,
    allow_credentials=_config.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _respond(result: OperationResult[Any], status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


# Errors a single-shot lifecycle or playlist call may raise
LIFECYCLE_ERRORS = (ValueError, AuthError, AssetError, ConfigurationError)


def _failure_status(exc: Exception) -> int:
    if isinstance(exc, ValueError):
        return 400
    if isinstance(exc, RetryableAuthError):
        return 401
    if isinstance(exc, ConfigurationError):
        return 500
    # Provider refused the call or the token exchange
    return 502


def _respond_failure(
    result_type: type[OperationResult[Any]],
    exc: Exception,
    action: str,
    **log_context: Any,
) -> JSONResponse:
    """Render an exception from a single-shot call as a failure result."""
    status_code = _failure_status(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{action} failed",
        error_type=exc.__class__.__name__,
        error=str(exc),
        status_code=status_code,
        **log_context,
    )
    return _respond(result_type.from_exception(exc), status_code)


def _not_found_or_error(result: OperationResult[Any]) -> int:
    if result.success:
        return 200
    return 404 if result.error and result.error.code == "NotFound" else 500


class PlaylistRequest(BaseModel):
    """Body of the create-or-get playlist request."""

    model_config = ConfigDict(populate_by_name=True)

    suite_id: str = Field(default="", alias="suiteId")
    title: str = ""
    description: str = ""


class PlaylistVideoRequest(BaseModel):
    """Body of the add-video-to-playlist request."""

    model_config = ConfigDict(populate_by_name=True)

    video_id: str = Field(default="", alias="videoId")


def _parse_metadata(raw: str | None) -> UploadMetadata:
    """Parse the JSON metadata form field; malformed input is ignored."""
    if not raw:
        return UploadMetadata()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring malformed metadata", error=str(e))
        return UploadMetadata()
    if not isinstance(data, dict):
        logger.warning("Ignoring non-object metadata", metadata_type=type(data).__name__)
        return UploadMetadata()
    return UploadMetadata.from_dict(data)


# Health check endpoint
@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status
    """
    cfg = get_config()
    return {
        "status": "healthy",
        "app": cfg.app_name,
        "env": cfg.app_env,
    }


@app.post("/api/recordings/upload")
async def upload_recording(
    video: UploadFile | None = File(default=None),
    metadata: str | None = Form(default=None),
    orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
) -> JSONResponse:
    """Upload a screen recording to YouTube.

    Expects multipart form data with a ``video`` file and an optional
    ``metadata`` JSON string (title, description, tags, privacy, categoryId).
    """
    if video is None:
        return _respond(
            UploadResult.fail("No video file provided", code="BlobValidationError"), 400
        )

    data = await video.read()
    if not data:
        return _respond(UploadResult.fail("Video file is empty", code="BlobValidationError"), 400)

    upload_metadata = _parse_metadata(metadata)
    blob = VideoBlob(data=data, content_type=video.content_type or "")

    logger.info(
        "Received recording",
        filename=video.filename,
        size=blob.size,
        content_type=blob.content_type,
    )

    try:
        result = await orchestrator.upload_with_retry(blob, upload_metadata)
    except ConfigurationError as e:
        logger.error("Upload rejected: service not configured", missing=e.missing)
        result = UploadResult.from_exception(e)

    return _respond(result, 200 if result.success else 500)


@app.get("/api/recordings/upload")
async def upload_service_status(
    token_manager: OAuthTokenManager = Depends(get_token_manager),
) -> dict[str, Any]:
    """Report whether the upload service is configured and authenticated."""
    cfg = get_config()
    return {
        **token_manager.get_status(),
        "service": "YouTube Upload Service",
        "environment": cfg.app_env,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


@app.delete("/api/recordings/{asset_id}")
async def delete_recording(
    asset_id: str,
    lifecycle: AssetLifecycleClient = Depends(get_asset_lifecycle),
) -> JSONResponse:
    """Delete an uploaded recording."""
    try:
        result = await lifecycle.delete_asset(asset_id)
    except LIFECYCLE_ERRORS as e:
        return _respond_failure(DeletionResult, e, "Delete", asset_id=asset_id)

    return _respond(result, _not_found_or_error(result))


@app.post("/api/recordings/playlists")
async def create_or_get_playlist(
    request: PlaylistRequest,
    playlists: PlaylistClient = Depends(get_playlist_client),
) -> JSONResponse:
    """Return the playlist of a test suite, creating it on first use."""
    if not request.suite_id.strip() or not request.title.strip():
        return _respond(
            PlaylistResult.fail("Suite ID and title are required", code="ValidationError"), 400
        )

    try:
        result = await playlists.create_or_get_playlist(
            request.suite_id, request.title, request.description
        )
    except LIFECYCLE_ERRORS as e:
        return _respond_failure(PlaylistResult, e, "Playlist creation", suite_id=request.suite_id)

    return _respond(result, 200 if result.success else 500)


@app.get("/api/recordings/playlists")
async def get_playlists(
    suite_id: str | None = Query(default=None, alias="suiteId"),
    action: str | None = Query(default=None),
    playlists: PlaylistClient = Depends(get_playlist_client),
) -> JSONResponse:
    """Get a suite's playlist, or list all playlists with ``action=list``."""
    if action == "list":
        try:
            listing = await playlists.list_playlists()
        except LIFECYCLE_ERRORS as e:
            return _respond_failure(PlaylistListResult, e, "Playlist listing")
        return _respond(listing, 200)

    if not suite_id:
        return _respond(PlaylistResult.fail("Suite ID is required", code="ValidationError"), 400)

    try:
        result = await playlists.get_playlist(suite_id)
    except LIFECYCLE_ERRORS as e:
        return _respond_failure(PlaylistResult, e, "Playlist lookup", suite_id=suite_id)

    return _respond(result, _not_found_or_error(result))


@app.post("/api/recordings/playlists/{playlist_id}/videos")
async def add_video_to_playlist(
    playlist_id: str,
    request: PlaylistVideoRequest,
    playlists: PlaylistClient = Depends(get_playlist_client),
) -> JSONResponse:
    """Add an uploaded recording to a playlist."""
    try:
        result = await playlists.add_video_to_playlist(playlist_id, request.video_id)
    except LIFECYCLE_ERRORS as e:
        return _respond_failure(
            PlaylistItemResult, e, "Add to playlist", playlist_id=playlist_id
        )

    return _respond(result, _not_found_or_error(result))


@app.delete("/api/recordings/playlists/{playlist_id}")
async def delete_playlist(
    playlist_id: str,
    playlists: PlaylistClient = Depends(get_playlist_client),
) -> JSONResponse:
    """Delete a playlist."""
    try:
        result = await playlists.delete_playlist(playlist_id)
    except LIFECYCLE_ERRORS as e:
        return _respond_failure(
            PlaylistDeletionResult, e, "Playlist deletion", playlist_id=playlist_id
        )

    return _respond(result, _not_found_or_error(result))

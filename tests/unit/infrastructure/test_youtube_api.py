"""Unit tests for the resumable upload client."""

import asyncio

import httpx
import pytest

from recording_upload.config.video_upload import VideoUploadConfig
from recording_upload.core.exceptions import (
    AuthError,
    BlobValidationError,
    ConfigurationError,
    InitiationError,
)
from recording_upload.core.state_machine import (
    UploadAttemptState,
    create_upload_attempt_state_machine,
)
from recording_upload.infrastructure.youtube_api import (
    ChunkRange,
    ResumableUploadClient,
    UploadMetadata,
    VideoBlob,
    build_video_body,
    iter_chunk_ranges,
)

SESSION_URL = "https://www.googleapis.com/upload/youtube/v3/videos?upload_id=xyz"
CHUNK = 256 * 1024
PAYLOAD = bytes(600 * 1024)  # 614400 bytes, three chunks


@pytest.fixture
def upload_client(mock_token_manager, mock_http_client, fixed_clock):
    return ResumableUploadClient(
        mock_token_manager,
        mock_http_client,
        config=VideoUploadConfig(),
        clock=fixed_clock,
    )


@pytest.fixture
def blob():
    return VideoBlob(data=PAYLOAD, content_type="video/webm")


@pytest.fixture
def session_created(make_response):
    return make_response(200, headers={"Location": SESSION_URL}, method="POST")


def video_resource(video_id="vid123", **snippet):
    return {
        "id": video_id,
        "snippet": {
            "title": snippet.get("title", "Checkout crash"),
            "description": snippet.get("description", "steps"),
            "thumbnails": {"default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"}},
        },
        "status": {"privacyStatus": "private"},
    }


def put_headers(mock_http_client):
    return [call.kwargs["headers"] for call in mock_http_client.put.call_args_list]


class TestChunkRanges:
    """Tests for iter_chunk_ranges and ChunkRange."""

    def test_600kb_splits_into_three_chunks(self):
        """Test 600 KB with 256 KB chunks."""
        ranges = list(iter_chunk_ranges(614400, CHUNK))

        assert ranges == [
            ChunkRange(0, 262144),
            ChunkRange(262144, 524288),
            ChunkRange(524288, 614400),
        ]
        assert [r.content_range(614400) for r in ranges] == [
            "bytes 0-262143/614400",
            "bytes 262144-524287/614400",
            "bytes 524288-614399/614400",
        ]

    def test_exact_multiple(self):
        """Test no empty trailing chunk on exact multiples."""
        ranges = list(iter_chunk_ranges(2 * CHUNK, CHUNK))
        assert [r.length for r in ranges] == [CHUNK, CHUNK]

    def test_small_payload_single_chunk(self):
        """Test payloads smaller than a chunk."""
        assert list(iter_chunk_ranges(10, CHUNK)) == [ChunkRange(0, 10)]

    def test_empty_payload(self):
        """Test size 0 yields nothing."""
        assert list(iter_chunk_ranges(0, CHUNK)) == []

    def test_invalid_chunk_size(self):
        """Test non-positive chunk size."""
        with pytest.raises(ValueError):
            list(iter_chunk_ranges(10, 0))


class TestVideoBlob:
    """Tests for VideoBlob."""

    def test_size(self):
        assert VideoBlob(data=b"abc").size == 3

    def test_default_content_type(self):
        """Test missing content types fall back to webm."""
        assert VideoBlob(data=b"abc").content_type == "video/webm"
        assert VideoBlob(data=b"abc", content_type="").content_type == "video/webm"

    def test_from_path_guesses_type(self, tmp_path):
        """Test loading from disk."""
        path = tmp_path / "recording.mp4"
        path.write_bytes(b"\x00\x01")

        blob = VideoBlob.from_path(path)

        assert blob.data == b"\x00\x01"
        assert blob.content_type == "video/mp4"


class TestUploadMetadata:
    """Tests for UploadMetadata helpers."""

    def test_from_dict_accepts_client_keys(self):
        """Test camelCase keys sent by the web client."""
        metadata = UploadMetadata.from_dict(
            {
                "title": "Bug",
                "description": "Steps",
                "tags": ["qa", 7],
                "privacy": "Unlisted",
                "categoryId": "22",
            }
        )

        assert metadata.title == "Bug"
        assert metadata.tags == ["qa", "7"]
        assert metadata.privacy_status == "Unlisted"
        assert metadata.category_id == "22"

    def test_from_dict_ignores_bad_tags(self):
        assert UploadMetadata.from_dict({"tags": "qa"}).tags is None

    def test_build_video_body(self):
        """Test request body layout and limits."""
        body = build_video_body(
            UploadMetadata(
                title="t" * 150,
                description="d" * 6000,
                tags=["qa"],
                privacy_status="unlisted",
                category_id="28",
            )
        )

        assert len(body["snippet"]["title"]) == 100
        assert len(body["snippet"]["description"]) == 5000
        assert body["snippet"]["tags"] == ["qa"]
        assert body["snippet"]["categoryId"] == "28"
        assert body["status"] == {"privacyStatus": "unlisted", "selfDeclaredMadeForKids": False}


class TestFinalizeMetadata:
    """Tests for default handling."""

    def test_blank_metadata_gets_defaults(self, upload_client):
        """Test every blank field is filled."""
        metadata = upload_client.finalize_metadata(UploadMetadata())

        assert metadata.title == "Recording - 2025-03-14"
        assert metadata.description == "Screen recording uploaded from QA testing tool"
        assert metadata.tags == ["qa", "testing", "screen-recording"]
        assert metadata.category_id == "28"
        assert metadata.privacy_status == "private"

    def test_privacy_is_lowercased(self, upload_client):
        metadata = upload_client.finalize_metadata(UploadMetadata(privacy_status=" PUBLIC "))
        assert metadata.privacy_status == "public"

    def test_unknown_privacy_falls_back_to_private(self, upload_client):
        metadata = upload_client.finalize_metadata(UploadMetadata(privacy_status="secret"))
        assert metadata.privacy_status == "private"

    def test_explicit_empty_tags_are_kept(self, upload_client):
        metadata = upload_client.finalize_metadata(UploadMetadata(tags=[]))
        assert metadata.tags == []

    def test_caller_values_win(self, upload_client):
        metadata = upload_client.finalize_metadata(
            UploadMetadata(title="Bug", description="Steps", category_id="22", duration=12.5)
        )

        assert metadata.title == "Bug"
        assert metadata.description == "Steps"
        assert metadata.category_id == "22"
        assert metadata.duration == 12.5


class TestUploadVideo:
    """Tests for ResumableUploadClient.upload_video."""

    # =========================================================================
    # Success
    # =========================================================================

    @pytest.mark.asyncio
    async def test_three_chunk_upload(
        self, upload_client, mock_http_client, blob, session_created, make_response
    ):
        """Test 600 KB upload sends three PUTs with correct ranges."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.side_effect = [
            make_response(308, method="PUT"),
            make_response(308, method="PUT"),
            make_response(200, json=video_resource(), method="PUT"),
        ]
        checkpoints = []

        result = await upload_client.upload_video(
            blob,
            UploadMetadata(title="Checkout crash", duration=42.0),
            on_chunk=lambda done, total: checkpoints.append((done, total)),
        )

        assert result.success is True
        assert result.data.asset_id == "vid123"
        assert result.data.url == "https://www.youtube.com/watch?v=vid123"
        assert result.data.embed_url == "https://www.youtube.com/embed/vid123"
        assert result.data.thumbnail_url == "https://i.ytimg.com/vi/vid123/default.jpg"
        assert result.data.privacy_status == "private"
        assert result.data.duration == 42.0

        assert mock_http_client.put.call_count == 3
        assert [h["Content-Range"] for h in put_headers(mock_http_client)] == [
            "bytes 0-262143/614400",
            "bytes 262144-524287/614400",
            "bytes 524288-614399/614400",
        ]
        assert [h["Content-Length"] for h in put_headers(mock_http_client)] == [
            "262144",
            "262144",
            "90112",
        ]
        assert checkpoints == [(262144, 614400), (524288, 614400)]

        for call in mock_http_client.put.call_args_list:
            assert call.args[0] == SESSION_URL
        third_body = mock_http_client.put.call_args_list[2].kwargs["content"]
        assert len(third_body) == 90112

    @pytest.mark.asyncio
    async def test_initiation_request(
        self, upload_client, mock_http_client, blob, session_created, make_response
    ):
        """Test the session request headers and body."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.side_effect = [
            make_response(308),
            make_response(308),
            make_response(201, json=video_resource()),
        ]

        await upload_client.upload_video(blob, UploadMetadata(title="Checkout crash"))

        call = mock_http_client.post.call_args
        assert "uploadType=resumable" in call.args[0]
        assert call.kwargs["headers"]["Content-Type"] == "application/json; charset=UTF-8"
        assert call.kwargs["headers"]["X-Upload-Content-Length"] == "614400"
        assert call.kwargs["headers"]["X-Upload-Content-Type"] == "video/webm"
        assert call.kwargs["headers"]["Authorization"] == "Bearer access-token"
        assert call.kwargs["json"]["snippet"]["title"] == "Checkout crash"
        assert call.kwargs["json"]["status"]["privacyStatus"] == "private"

    @pytest.mark.asyncio
    async def test_single_chunk_upload(
        self, upload_client, mock_http_client, session_created, make_response
    ):
        """Test small payloads complete on the first PUT."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.return_value = make_response(200, json=video_resource("small"))

        result = await upload_client.upload_video(VideoBlob(data=b"x" * 10), UploadMetadata())

        assert result.success is True
        assert put_headers(mock_http_client)[0]["Content-Range"] == "bytes 0-9/10"

    # =========================================================================
    # Chunk failures
    # =========================================================================

    @pytest.mark.asyncio
    async def test_308_on_last_chunk_is_failure(
        self, upload_client, mock_http_client, blob, session_created, make_response
    ):
        """Test running out of bytes without a completion response."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.return_value = make_response(308)

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.success is False
        assert result.error.code == "ChunkUploadError"
        assert result.error.offset == 614400

    @pytest.mark.asyncio
    async def test_401_mid_transfer_refreshes_once(
        self,
        upload_client,
        mock_http_client,
        mock_token_manager,
        blob,
        session_created,
        make_response,
    ):
        """Test a 401 refreshes the token and abandons the session."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.side_effect = [make_response(308), make_response(401)]

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.success is False
        assert result.error.code == "TokenExpiredDuringUploadError"
        assert result.error.offset == 262144
        assert result.error.status_code == 401
        mock_token_manager.refresh_access_token.assert_awaited_once()
        assert mock_http_client.put.call_count == 2

    @pytest.mark.asyncio
    async def test_server_error_reports_offset(
        self, upload_client, mock_http_client, blob, session_created, make_response
    ):
        """Test unexpected statuses become ChunkUploadError at the chunk offset."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.side_effect = [
            make_response(308),
            make_response(308),
            make_response(503, json={"error": {"message": "Backend Error"}}),
        ]

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.error.code == "ChunkUploadError"
        assert result.error.offset == 524288
        assert result.error.status_code == 503
        assert "Backend Error" in result.error.message

    @pytest.mark.asyncio
    async def test_transport_error_becomes_chunk_error(
        self, upload_client, mock_http_client, blob, session_created
    ):
        """Test connection failures during transfer."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.side_effect = httpx.ConnectError("connection reset")

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.error.code == "ChunkUploadError"
        assert result.error.offset == 0

    @pytest.mark.asyncio
    async def test_request_timeout(self, upload_client, mock_http_client, blob, session_created):
        """Test httpx timeouts become UploadTimeoutError."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.side_effect = httpx.ReadTimeout("timed out")

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.error.code == "UploadTimeoutError"
        assert result.error.offset == 0

    @pytest.mark.asyncio
    async def test_attempt_time_budget(
        self, upload_client, mock_http_client, blob, session_created
    ):
        """Test the per-attempt timeout aborts a stalled transfer."""
        mock_http_client.post.return_value = session_created

        async def stalled_put(*args, **kwargs):
            await asyncio.sleep(5)

        mock_http_client.put.side_effect = stalled_put

        result = await upload_client.upload_video(blob, UploadMetadata(), timeout=0.05)

        assert result.success is False
        assert result.error.code == "UploadTimeoutError"

    @pytest.mark.asyncio
    async def test_completion_without_id(
        self, upload_client, mock_http_client, session_created, make_response
    ):
        """Test a completion body without a video id."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.return_value = make_response(200, json={"kind": "youtube#video"})

        result = await upload_client.upload_video(VideoBlob(data=b"x"), UploadMetadata())

        assert result.error.code == "ChunkUploadError"

    # =========================================================================
    # Initiation failures
    # =========================================================================

    @pytest.mark.asyncio
    async def test_initiation_401_invalidates_token(
        self, upload_client, mock_http_client, mock_token_manager, blob, make_response
    ):
        """Test a rejected session request drops the cached token."""
        mock_http_client.post.return_value = make_response(
            401, json={"error": {"message": "Invalid Credentials"}}
        )

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.error.code == "InitiationError"
        assert result.error.status_code == 401
        mock_token_manager.invalidate.assert_called_once()
        mock_http_client.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_initiation_without_location(
        self, upload_client, mock_http_client, blob, make_response
    ):
        """Test a success response without a session URL."""
        mock_http_client.post.return_value = make_response(200)

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.error.code == "InitiationError"
        assert "No upload URL" in result.error.message

    @pytest.mark.asyncio
    async def test_initiation_transport_error(self, upload_client, mock_http_client, blob):
        mock_http_client.post.side_effect = httpx.ConnectError("dns failure")

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.error.code == "InitiationError"

    # =========================================================================
    # Token, validation and cancellation
    # =========================================================================

    @pytest.mark.asyncio
    async def test_missing_credentials_propagate(
        self, upload_client, mock_http_client, mock_token_manager, blob
    ):
        """Test ConfigurationError is raised, not wrapped."""
        mock_token_manager.ensure_valid_token.side_effect = ConfigurationError(
            missing=["refresh_token"]
        )

        with pytest.raises(ConfigurationError):
            await upload_client.upload_video(blob, UploadMetadata())

        mock_http_client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejected_refresh_is_failure_result(
        self, upload_client, mock_http_client, mock_token_manager, blob
    ):
        """Test AuthError from the token check becomes a result."""
        mock_token_manager.ensure_valid_token.side_effect = AuthError(
            "Token refresh failed", status_code=400
        )

        result = await upload_client.upload_video(blob, UploadMetadata())

        assert result.error.code == "AuthError"
        assert result.error.status_code == 400
        mock_http_client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_blob(self, upload_client, mock_http_client):
        """Test empty payloads are rejected before initiation."""
        result = await upload_client.upload_video(VideoBlob(data=b""), UploadMetadata())

        assert result.error.code == "BlobValidationError"
        mock_http_client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_before_first_chunk(
        self, upload_client, mock_http_client, blob, session_created
    ):
        """Test a set cancel event stops before any PUT."""
        mock_http_client.post.return_value = session_created
        cancel_event = asyncio.Event()
        cancel_event.set()

        result = await upload_client.upload_video(
            blob, UploadMetadata(), cancel_event=cancel_event
        )

        assert result.error.code == "UploadCancelledError"
        assert result.error.offset == 0
        mock_http_client.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_between_chunks(
        self, upload_client, mock_http_client, blob, session_created, make_response
    ):
        """Test cancellation is honoured at the next chunk boundary."""
        mock_http_client.post.return_value = session_created
        mock_http_client.put.return_value = make_response(308)
        cancel_event = asyncio.Event()

        result = await upload_client.upload_video(
            blob,
            UploadMetadata(),
            on_chunk=lambda done, total: cancel_event.set(),
            cancel_event=cancel_event,
        )

        assert result.error.code == "UploadCancelledError"
        assert result.error.offset == 262144
        assert mock_http_client.put.call_count == 1


class TestPerformResumableUpload:
    """Tests for the attempt state machine walk."""

    @pytest.mark.asyncio
    async def test_success_history(
        self, upload_client, mock_http_client, blob, session_created, make_response
    ):
        mock_http_client.post.return_value = session_created
        mock_http_client.put.side_effect = [
            make_response(308),
            make_response(308),
            make_response(200, json=video_resource()),
        ]
        attempt = create_upload_attempt_state_machine(UploadAttemptState.TOKEN_CHECK.value)

        asset = await upload_client.perform_resumable_upload(
            blob, upload_client.finalize_metadata(UploadMetadata()), attempt=attempt
        )

        assert asset.asset_id == "vid123"
        assert attempt.history == [
            UploadAttemptState.TOKEN_CHECK,
            UploadAttemptState.INITIATING,
            UploadAttemptState.TRANSFERRING,
            UploadAttemptState.TRANSFERRING,
            UploadAttemptState.TRANSFERRING,
            UploadAttemptState.SUCCESS,
        ]

    @pytest.mark.asyncio
    async def test_auth_expired_state(
        self, upload_client, mock_http_client, blob, session_created, make_response
    ):
        mock_http_client.post.return_value = session_created
        mock_http_client.put.return_value = make_response(401)
        attempt = create_upload_attempt_state_machine(UploadAttemptState.TOKEN_CHECK.value)

        with pytest.raises(AuthError):
            await upload_client.perform_resumable_upload(blob, UploadMetadata(), attempt=attempt)

        assert attempt.current == UploadAttemptState.AUTH_EXPIRED

    @pytest.mark.asyncio
    async def test_initiation_failure_state(
        self, upload_client, mock_http_client, blob, make_response
    ):
        mock_http_client.post.return_value = make_response(403)
        attempt = create_upload_attempt_state_machine(UploadAttemptState.TOKEN_CHECK.value)

        with pytest.raises(InitiationError):
            await upload_client.perform_resumable_upload(blob, UploadMetadata(), attempt=attempt)

        assert attempt.current == UploadAttemptState.FAILED

    @pytest.mark.asyncio
    async def test_empty_blob_raises(self, upload_client):
        with pytest.raises(BlobValidationError):
            await upload_client.perform_resumable_upload(VideoBlob(data=b""), UploadMetadata())

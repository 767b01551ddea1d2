#!/usr/bin/env python3
"""Recording upload script.

Uploads a local screen recording to YouTube through the same retrying
resumable pipeline the API uses, or deletes a previously uploaded video.

Usage:
    # Upload with defaults (private, generated title)
    python scripts/upload_recording.py upload ./recording.webm

    # Upload with metadata
    python scripts/upload_recording.py upload ./recording.webm \\
        --title "Checkout crash" --tags qa regression --privacy unlisted

    # Delete an uploaded video
    python scripts/upload_recording.py delete dQw4w9WgXcQ

Credentials are read from YOUTUBE_CLIENT_ID, YOUTUBE_CLIENT_SECRET and
YOUTUBE_REFRESH_TOKEN (a .env file in the working directory is loaded).
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from recording_upload.core.container import container  # noqa: E402
from recording_upload.core.exceptions import RecordingUploadError  # noqa: E402
from recording_upload.core.logging import get_logger, setup_logging  # noqa: E402
from recording_upload.infrastructure.media_probe import format_duration  # noqa: E402
from recording_upload.infrastructure.youtube_api import UploadMetadata, VideoBlob  # noqa: E402

setup_logging()
logger = get_logger(__name__)


def _print_progress(percent: float) -> None:
    print(f"\rUploading... {percent:5.1f}%", end="", file=sys.stderr, flush=True)


async def upload(args: argparse.Namespace) -> int:
    """Upload a recording file.

    Returns:
        Process exit code
    """
    blob = VideoBlob.from_path(args.path)
    metadata = UploadMetadata(
        title=args.title or "",
        description=args.description or "",
        tags=args.tags,
        privacy_status=args.privacy or "",
    )

    orchestrator = container.upload_orchestrator()
    try:
        result = await orchestrator.upload_with_retry(
            blob,
            metadata,
            on_progress=_print_progress,
            max_retries=args.retries,
        )
    finally:
        await container.http_client().close()

    print(file=sys.stderr)
    print(json.dumps(result.model_dump(mode="json"), indent=2))
    if result.success and result.data is not None:
        print(f"Duration: {format_duration(result.data.duration)}", file=sys.stderr)
        return 0
    return 1


async def delete(args: argparse.Namespace) -> int:
    """Delete an uploaded video.

    Returns:
        Process exit code
    """
    lifecycle = container.asset_lifecycle()
    try:
        result = await lifecycle.delete_asset(args.asset_id)
    finally:
        await container.http_client().close()

    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 0 if result.success else 1


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Upload QA screen recordings to YouTube",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    upload_parser = subparsers.add_parser("upload", help="Upload a recording")
    upload_parser.add_argument("path", type=Path, help="Path to the video file")
    upload_parser.add_argument("--title", type=str, default=None, help="Video title")
    upload_parser.add_argument("--description", type=str, default=None, help="Video description")
    upload_parser.add_argument("--tags", nargs="*", default=None, help="Video tags")
    upload_parser.add_argument(
        "--privacy",
        choices=["public", "unlisted", "private"],
        default=None,
        help="Privacy status (default: private)",
    )
    upload_parser.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Total upload attempts (default: 3)",
    )
    upload_parser.set_defaults(handler=upload)

    delete_parser = subparsers.add_parser("delete", help="Delete an uploaded video")
    delete_parser.add_argument("asset_id", help="YouTube video ID")
    delete_parser.set_defaults(handler=delete)

    args = parser.parse_args()

    if args.command == "upload" and not args.path.is_file():
        parser.error(f"file not found: {args.path}")

    try:
        exit_code = asyncio.run(args.handler(args))
    except KeyboardInterrupt:
        logger.info("Cancelled by user")
        sys.exit(1)
    except RecordingUploadError as e:
        logger.error("Command failed", **e.to_dict())
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

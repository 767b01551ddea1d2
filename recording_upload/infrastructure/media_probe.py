"""Duration probe for in-memory video payloads using ffmpeg-python.

Probing is best-effort: the duration is informational metadata, so any
failure is logged as a warning and reported as 0 seconds instead of
failing the upload.
"""

import asyncio
import math
import tempfile
from pathlib import Path

import ffmpeg

from recording_upload.core.logging import get_logger

logger = get_logger(__name__)

# Container suffixes ffprobe recognises without sniffing
_SUFFIXES = {
    "video/webm": ".webm",
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/x-matroska": ".mkv",
}


def _probe_file(path: Path) -> float:
    probe_data = ffmpeg.probe(str(path))
    format_info = probe_data.get("format", {})
    duration = float(format_info.get("duration", 0))
    if not math.isfinite(duration) or duration < 0:
        return 0.0
    return duration


def _probe_bytes(data: bytes, content_type: str) -> float:
    suffix = _SUFFIXES.get(content_type.split(";")[0].strip().lower(), ".bin")
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / f"probe{suffix}"
        path.write_bytes(data)
        return _probe_file(path)


async def probe_duration(data: bytes, content_type: str = "video/webm") -> float:
    """Get the duration of a video payload in seconds.

    Args:
        data: Raw video bytes
        content_type: Declared content type, used to pick a file suffix

    Returns:
        Duration in seconds, or 0.0 when it cannot be determined
    """
    if not data:
        return 0.0

    try:
        duration = await asyncio.to_thread(_probe_bytes, data, content_type)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode(errors="replace")[:500] if e.stderr else None
        logger.warning("Duration probe failed, using 0", stderr=stderr)
        return 0.0
    except (OSError, ValueError, TypeError) as e:
        # OSError covers a missing ffprobe binary
        logger.warning("Duration probe unavailable, using 0", error=str(e))
        return 0.0

    logger.debug("Probed duration", duration_seconds=duration)
    return duration


def format_duration(seconds: float) -> str:
    """Format seconds as ``m:ss``.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration; "0:00" for negative or non-finite input
    """
    if not math.isfinite(seconds) or seconds < 0:
        return "0:00"
    minutes = int(seconds // 60)
    remaining = int(seconds % 60)
    return f"{minutes}:{remaining:02d}"


__all__ = ["format_duration", "probe_duration"]

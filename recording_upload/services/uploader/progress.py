"""Progress estimation across upload attempts.

Each attempt owns an equal slice of the 0-100 range, so progress never
restarts from zero when an attempt is retried.
"""

from collections.abc import Callable

from recording_upload.core.logging import get_logger

logger = get_logger(__name__)

# Receives overall progress in percent (0-100)
ProgressCallback = Callable[[float], None]


def attempt_percent(uploaded_bytes: int, total_size: int) -> float:
    """Percent of the payload confirmed within one attempt."""
    if total_size <= 0:
        return 0.0
    return min(uploaded_bytes / total_size * 100, 100.0)


def overall_progress(attempt: int, max_attempts: int, percent: float) -> float:
    """Map in-attempt progress to overall progress.

    Args:
        attempt: 1-based attempt number
        max_attempts: Total attempts allowed
        percent: Progress within the attempt (0-100)

    Returns:
        ``(attempt - 1) / max_attempts * 100 + percent / max_attempts``,
        clamped to ``[0, 100]``
    """
    if max_attempts <= 0:
        raise ValueError("max_attempts must be positive")
    overall = (attempt - 1) / max_attempts * 100 + percent / max_attempts
    return max(0.0, min(overall, 100.0))


class ProgressReporter:
    """Forwards chunk checkpoints of one attempt to a progress callback.

    Callback failures are logged and never interrupt the upload.
    """

    def __init__(
        self,
        callback: ProgressCallback | None,
        attempt: int,
        max_attempts: int,
    ) -> None:
        self.callback = callback
        self.attempt = attempt
        self.max_attempts = max_attempts

    def on_chunk(self, uploaded_bytes: int, total_size: int) -> None:
        percent = attempt_percent(uploaded_bytes, total_size)
        self.report(overall_progress(self.attempt, self.max_attempts, percent))

    def report(self, value: float) -> None:
        if self.callback is None:
            return
        try:
            self.callback(value)
        except Exception as e:
            logger.warning(
                "Progress callback failed",
                error_type=e.__class__.__name__,
                error=str(e),
            )


__all__ = [
    "ProgressCallback",
    "ProgressReporter",
    "attempt_percent",
    "overall_progress",
]

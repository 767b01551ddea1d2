"""Custom exceptions for the recording upload service.

This module defines all custom exceptions used throughout the application.
All exceptions inherit from RecordingUploadError for easy catching.

Exception classes include context dictionaries for structured logging
and debugging. Use the `context` property to access additional details.
"""

from typing import Any


class RecordingUploadError(Exception):
    """Base exception for all recording upload errors.

    All custom exceptions in the application should inherit from this class.
    Provides a context dictionary for structured error information.

    Attributes:
        context: Dictionary with additional error context

    Example:
        >>> try:
        ...     raise RecordingUploadError("Something went wrong", context={"asset_id": "abc"})
        ... except RecordingUploadError as e:
        ...     print(f"Error: {e}, Context: {e.context}")
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize RecordingUploadError.

        Args:
            message: Error message
            context: Optional dictionary with additional context
        """
        self.context = context or {}
        super().__init__(message)

    def with_context(self, **kwargs: Any) -> "RecordingUploadError":
        """Add additional context to the exception.

        Args:
            **kwargs: Key-value pairs to add to context

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization.

        Returns:
            Dictionary with error type, message, and context
        """
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "context": self.context,
        }


# ============================================
# Configuration Errors
# ============================================


class ConfigError(RecordingUploadError):
    """Base exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ConfigError.

        Args:
            message: Error message
            config_path: Path to the config file/key
            context: Additional context
        """
        ctx = context or {}
        if config_path:
            ctx["config_path"] = config_path
        super().__init__(message, context=ctx)


class ConfigurationError(ConfigError):
    """Raised when required credentials are missing.

    Fatal: never retried. Surfaced on first use rather than at load time.

    Attributes:
        missing: Names of the missing settings
    """

    def __init__(
        self,
        message: str = "Missing required YouTube API credentials",
        missing: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Error message
            missing: Names of the missing settings
            context: Additional context
        """
        ctx = context or {}
        if missing:
            ctx["missing"] = missing

        self.missing = missing or []

        super().__init__(message, context=ctx)


# ============================================
# Authentication Errors
# ============================================


class AuthError(RecordingUploadError):
    """Raised when the OAuth provider rejects a token exchange or a request.

    Attributes:
        status_code: HTTP status code (if applicable)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AuthError.

        Args:
            message: Error message
            status_code: HTTP status code returned by the provider
            context: Additional context
        """
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code

        self.status_code = status_code

        super().__init__(message, context=ctx)


class RetryableAuthError(AuthError):
    """Raised when a single-shot call hit a 401.

    The token has already been refreshed; the caller should re-invoke.
    """

    def __init__(
        self,
        message: str = "Access token was rejected; token refreshed, retry the call",
        status_code: int | None = 401,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize RetryableAuthError.

        Args:
            message: Error message
            status_code: HTTP status code
            context: Additional context
        """
        super().__init__(message, status_code=status_code, context=context)


# ============================================
# Upload Errors
# ============================================


class UploadError(RecordingUploadError):
    """Base exception for upload-related errors.

    Attributes:
        status_code: HTTP status code (if applicable)
        offset: Byte offset at which the failure occurred (if applicable)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        offset: int | None = None,
        platform: str = "youtube",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize UploadError.

        Args:
            message: Error message
            status_code: HTTP status code
            offset: Byte offset of the failure
            platform: Upload platform
            context: Additional context
        """
        ctx = context or {}
        if status_code is not None:
            ctx["status_code"] = status_code
        if offset is not None:
            ctx["offset"] = offset
        ctx["platform"] = platform
        super().__init__(message, context=ctx)

        # Set after super() so cooperative bases cannot reset them
        self.status_code = status_code
        self.offset = offset


class BlobValidationError(UploadError):
    """Raised when the video payload is unusable (e.g. empty)."""


class InitiationError(UploadError):
    """Raised when a resumable upload session could not be created."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize InitiationError.

        Args:
            message: Error message
            status_code: HTTP status code of the initiation response
            context: Additional context
        """
        super().__init__(message, status_code=status_code, context=context)


class ChunkUploadError(UploadError):
    """Raised when a chunk transfer fails mid-upload.

    Attributes:
        offset: Byte offset of the chunk that failed
    """

    def __init__(
        self,
        message: str,
        offset: int,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ChunkUploadError.

        Args:
            message: Error message
            offset: Byte offset of the failing chunk
            status_code: HTTP status code (None for transport failures)
            context: Additional context
        """
        super().__init__(message, status_code=status_code, offset=offset, context=context)


class TokenExpiredDuringUploadError(UploadError, AuthError):
    """Raised when a chunk PUT returned 401.

    The token has been refreshed; the session is abandoned and the next
    attempt starts a fresh one.
    """

    def __init__(
        self,
        message: str = "Access token expired during upload",
        offset: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize TokenExpiredDuringUploadError.

        Args:
            message: Error message
            offset: Byte offset of the rejected chunk
            context: Additional context
        """
        super().__init__(message, status_code=401, offset=offset, context=context)


class UploadTimeoutError(UploadError, TimeoutError):
    """Raised when an upload attempt exceeded its time budget.

    Attributes:
        timeout_seconds: The budget that was exceeded
    """

    def __init__(
        self,
        message: str = "Upload timed out",
        timeout_seconds: float | None = None,
        offset: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize UploadTimeoutError.

        Args:
            message: Error message
            timeout_seconds: Time budget in seconds
            offset: Bytes confirmed before the timeout
            context: Additional context
        """
        ctx = context or {}
        if timeout_seconds is not None:
            ctx["timeout_seconds"] = timeout_seconds
        super().__init__(message, offset=offset, context=ctx)
        self.timeout_seconds = timeout_seconds


class UploadCancelledError(UploadError):
    """Raised when the caller cancelled an upload between chunks."""

    def __init__(
        self,
        message: str = "Upload cancelled",
        offset: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize UploadCancelledError.

        Args:
            message: Error message
            offset: Bytes confirmed before cancellation
            context: Additional context
        """
        super().__init__(message, offset=offset, context=context)


# ============================================
# Asset Lifecycle Errors
# ============================================


class AssetError(RecordingUploadError):
    """Base exception for operations on an already uploaded asset.

    Attributes:
        asset_id: Provider asset ID
        status_code: HTTP status code (if applicable)
    """

    def __init__(
        self,
        message: str,
        asset_id: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AssetError.

        Args:
            message: Error message
            asset_id: Provider asset ID
            status_code: HTTP status code
            context: Additional context
        """
        ctx = context or {}
        if asset_id:
            ctx["asset_id"] = asset_id
        if status_code is not None:
            ctx["status_code"] = status_code

        self.asset_id = asset_id
        self.status_code = status_code

        super().__init__(message, context=ctx)


class DeletionError(AssetError):
    """Raised when the provider refuses a delete with an unexpected status."""


class AssetUpdateError(AssetError):
    """Raised when a metadata update fails."""


class PlaylistError(AssetError):
    """Raised when a playlist call fails with an unexpected status.

    ``asset_id`` holds the playlist ID when one is known.
    """

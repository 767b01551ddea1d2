"""Application configuration using Pydantic Settings.

This module defines all application configuration loaded from environment variables.
Configuration is validated on load and provides type-safe access throughout the app.

YouTube credentials are intentionally optional here: their absence is reported
as a ConfigurationError on first use by the token manager, not at load time.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration.

    All configuration is loaded from environment variables or .env file.
    Validation happens automatically via Pydantic.

    Example:
        >>> config = Config()
        >>> print(config.app_name)
        'QA Recording Uploader'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================
    # Application Settings
    # ============================================
    app_name: str = Field(default="QA Recording Uploader", description="Application name")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    # ============================================
    # YouTube OAuth
    # ============================================
    youtube_client_id: str = Field(default="", description="YouTube OAuth client ID")
    youtube_client_secret: str = Field(default="", description="YouTube OAuth client secret")
    youtube_refresh_token: str = Field(default="", description="Stored OAuth refresh token")
    youtube_token_url: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="OAuth2 token endpoint",
    )

    # ============================================
    # HTTP
    # ============================================
    http_timeout_seconds: float = Field(
        default=60.0, description="Per-request HTTP timeout", gt=0, le=600
    )
    http_max_connections: int = Field(
        default=20, description="Maximum HTTP connections", ge=1, le=200
    )

    # ============================================
    # CORS Settings
    # ============================================
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow CORS credentials")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode.

        Returns:
            True if app_env is 'development'
        """
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if app_env is 'production'
        """
        return self.app_env == "production"

    @property
    def has_youtube_credentials(self) -> bool:
        """Check whether all three YouTube OAuth values are present."""
        return bool(
            self.youtube_client_id and self.youtube_client_secret and self.youtube_refresh_token
        )


# =============================================================================
# Singleton accessor
# =============================================================================

_config: Config | None = None


def get_config() -> Config:
    """Get the global Config singleton.

    This function provides a lazy-loaded singleton instance of Config.
    Use this instead of importing `container.config()` to avoid circular imports.

    Returns:
        The global Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config

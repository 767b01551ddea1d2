"""Dependency Injection Container.

This module provides a centralized DI container using dependency-injector.
Lifecycles:
- Singleton: One instance for the entire application (HTTP client, tokens)
- Transient: New instance every time (Factory) for services

Usage:
    # In FastAPI
    from recording_upload.core.container import get_upload_orchestrator

    @app.post("/upload")
    async def endpoint(
        orchestrator: UploadOrchestrator = Depends(get_upload_orchestrator),
    ):
        ...

    # In scripts
    from recording_upload.core.container import container

    orchestrator = container.upload_orchestrator()

    # In tests
    with container.http_client.override(mock_http_client):
        ...
"""

from dependency_injector import containers, providers

from recording_upload.core.config import Config, get_config
from recording_upload.infrastructure.http_client import HTTPClient
from recording_upload.infrastructure.youtube_auth import OAuthTokenManager
from recording_upload.services.uploader.lifecycle import AssetLifecycleClient
from recording_upload.services.uploader.orchestrator import UploadOrchestrator
from recording_upload.services.uploader.playlists import PlaylistClient


class InfrastructureContainer(containers.DeclarativeContainer):
    """Infrastructure layer dependencies (HTTP client, OAuth token state).

    Both are Singleton: one connection pool and one cached token per process.
    """

    global_config = providers.Dependency(instance_of=Config)

    # ============================================
    # HTTP Client
    # ============================================

    http_client = providers.Singleton(
        "recording_upload.infrastructure.http_client.HTTPClient",
        timeout=global_config.provided.http_timeout_seconds,
        max_connections=global_config.provided.http_max_connections,
    )

    # ============================================
    # YouTube OAuth
    # ============================================

    oauth_credentials = providers.Singleton(
        "recording_upload.infrastructure.youtube_auth.OAuthCredentials",
        client_id=global_config.provided.youtube_client_id,
        client_secret=global_config.provided.youtube_client_secret,
        refresh_token=global_config.provided.youtube_refresh_token,
    )

    token_manager = providers.Singleton(
        "recording_upload.infrastructure.youtube_auth.OAuthTokenManager",
        credentials=oauth_credentials,
        http_client=http_client,
        token_url=global_config.provided.youtube_token_url,
    )


class ConfigContainer(containers.DeclarativeContainer):
    """Configuration models container.

    Provides typed Pydantic config models for services.
    """

    video_upload_config = providers.Singleton(
        "recording_upload.config.video_upload.VideoUploadConfig",
    )


class ServiceContainer(containers.DeclarativeContainer):
    """Service layer dependencies.

    Services are Transient (Factory) and hold no state between calls,
    except the playlist client, which keeps the suite cache.
    """

    infrastructure = providers.DependenciesContainer()
    configs = providers.DependenciesContainer()

    upload_client = providers.Factory(
        "recording_upload.infrastructure.youtube_api.ResumableUploadClient",
        token_manager=infrastructure.token_manager,
        http_client=infrastructure.http_client,
        config=configs.video_upload_config,
    )

    upload_orchestrator = providers.Factory(
        "recording_upload.services.uploader.orchestrator.UploadOrchestrator",
        upload_client=upload_client,
        config=configs.video_upload_config,
    )

    asset_lifecycle = providers.Factory(
        "recording_upload.services.uploader.lifecycle.AssetLifecycleClient",
        token_manager=infrastructure.token_manager,
        http_client=infrastructure.http_client,
        config=configs.video_upload_config,
    )

    # Singleton: owns the suite -> playlist cache
    playlist_client = providers.Singleton(
        "recording_upload.services.uploader.playlists.PlaylistClient",
        token_manager=infrastructure.token_manager,
        http_client=infrastructure.http_client,
        config=configs.video_upload_config,
    )


class ApplicationContainer(containers.DeclarativeContainer):
    """Root application container.

    Composes all sub-containers and provides the main entry point.
    """

    # Uses get_config() to ensure same instance across the app
    config = providers.Singleton(get_config)

    # Sub-containers
    infrastructure = providers.Container(
        InfrastructureContainer,
        global_config=config,
    )

    configs = providers.Container(
        ConfigContainer,
    )

    services = providers.Container(
        ServiceContainer,
        infrastructure=infrastructure,
        configs=configs,
    )

    # ============================================
    # Convenience accessors (shortcuts)
    # ============================================

    http_client = providers.Singleton(
        lambda client: client,
        client=infrastructure.http_client,
    )

    token_manager = providers.Singleton(
        lambda manager: manager,
        manager=infrastructure.token_manager,
    )

    upload_orchestrator = providers.Factory(
        lambda svc: svc,
        svc=services.upload_orchestrator,
    )

    asset_lifecycle = providers.Factory(
        lambda svc: svc,
        svc=services.asset_lifecycle,
    )

    playlist_client = providers.Singleton(
        lambda svc: svc,
        svc=services.playlist_client,
    )


def create_container() -> ApplicationContainer:
    """Create and configure the application container.

    Returns:
        Configured ApplicationContainer instance
    """
    return ApplicationContainer()


# Global container instance
container = create_container()


# ============================================
# FastAPI Integration
# ============================================


def get_container() -> ApplicationContainer:
    """Get the global container (for FastAPI Depends)."""
    return container


def get_http_client() -> HTTPClient:
    """FastAPI dependency for the shared HTTP client."""
    return container.http_client()


def get_token_manager() -> OAuthTokenManager:
    """FastAPI dependency for the shared token manager."""
    return container.token_manager()


def get_upload_orchestrator() -> UploadOrchestrator:
    """FastAPI dependency for a new upload orchestrator."""
    return container.upload_orchestrator()


def get_asset_lifecycle() -> AssetLifecycleClient:
    """FastAPI dependency for a new lifecycle client."""
    return container.asset_lifecycle()


def get_playlist_client() -> PlaylistClient:
    """FastAPI dependency for the shared playlist client."""
    return container.playlist_client()


__all__ = [
    "ApplicationContainer",
    "ConfigContainer",
    "InfrastructureContainer",
    "ServiceContainer",
    "container",
    "create_container",
    "get_asset_lifecycle",
    "get_config",
    "get_container",
    "get_http_client",
    "get_playlist_client",
    "get_token_manager",
    "get_upload_orchestrator",
]

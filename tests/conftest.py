"""Pytest configuration and fixtures.

This module provides common fixtures used across all tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from recording_upload.core.logging import setup_logging
from recording_upload.infrastructure.http_client import HTTPClient

# Setup logging for tests
setup_logging()

FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)


def _make_response(
    status_code: int,
    json: object | None = None,
    headers: dict[str, str] | None = None,
    method: str = "GET",
    url: str = "https://www.googleapis.com/test",
) -> httpx.Response:
    """Build a real httpx.Response bound to a request."""
    return httpx.Response(
        status_code,
        json=json,
        headers=headers,
        request=httpx.Request(method, url),
    )


@pytest.fixture
def make_response():
    """Factory for real httpx responses."""
    return _make_response


@pytest.fixture
def fixed_clock():
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def mock_http_client() -> MagicMock:
    """HTTPClient double with async request methods."""
    client = MagicMock(spec=HTTPClient)
    client.get = AsyncMock()
    client.post = AsyncMock()
    client.put = AsyncMock()
    client.delete = AsyncMock()
    client.close = AsyncMock()
    client.is_closed = False
    return client


@pytest.fixture
def mock_token_manager() -> MagicMock:
    """Token manager double that always holds a valid token."""
    manager = MagicMock()
    manager.ensure_valid_token = AsyncMock(return_value="access-token")
    manager.refresh_access_token = AsyncMock(return_value="refreshed-token")
    manager.authorization_header = AsyncMock(
        side_effect=lambda: {"Authorization": "Bearer access-token"}
    )
    manager.invalidate = MagicMock()
    manager.get_status = MagicMock(
        return_value={"has_credentials": True, "has_valid_token": True, "token_expires_at": None}
    )
    return manager

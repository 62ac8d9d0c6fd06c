"""Pytest configuration for integration tests.

Integration tests require:
- SQUARE_ACCESS_TOKEN and SQUARE_LOCATION_ID for a sandbox seller
- SQUARE_OAUTH_CLIENT_ID and SQUARE_OAUTH_CLIENT_SECRET for OAuth checks

Environment variables can be set via:
- .env.integration file (loaded if present)
- Shell environment
- CI/CD secrets
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from dotenv import load_dotenv

from square_giftcard import SquareClient, SquareConfig, SquareOAuthConfig
from square_giftcard.auth import ConnectionStore
from square_giftcard.config import SquareEnvironment

env_file = Path(__file__).parent.parent.parent / ".env.integration"
if env_file.exists():
    load_dotenv(env_file)


def _get_env_or_skip(var_name: str) -> str:
    """Get environment variable or skip test."""
    value = os.environ.get(var_name)
    if not value:
        pytest.skip(f"Missing required environment variable: {var_name}")
    return value


@pytest.fixture(scope="session")
def integration_config() -> SquareConfig:
    """Get sandbox seller configuration for integration tests."""
    config = SquareConfig(
        access_token=_get_env_or_skip("SQUARE_ACCESS_TOKEN"),
        location_id=_get_env_or_skip("SQUARE_LOCATION_ID"),
        environment=SquareEnvironment.SANDBOX,
    )

    assert "squareupsandbox.com" in config.base_url, "Integration tests must use sandbox"
    return config


@pytest.fixture(scope="session")
def integration_oauth_config() -> SquareOAuthConfig:
    """Get sandbox OAuth app configuration for integration tests."""
    return SquareOAuthConfig(
        client_id=_get_env_or_skip("SQUARE_OAUTH_CLIENT_ID"),
        client_secret=_get_env_or_skip("SQUARE_OAUTH_CLIENT_SECRET"),
        redirect_uri=os.environ.get("SQUARE_OAUTH_REDIRECT_URI") or None,
        environment=SquareEnvironment.SANDBOX,
    )


@pytest.fixture
async def async_integration_client(
    integration_config: SquareConfig,
    tmp_path: Path,
) -> AsyncIterator[SquareClient]:
    """Get a pooled sandbox client for integration tests.

    Note: Function-scoped because httpx.AsyncClient must be created
    in the same event loop where it will be used.
    """
    client = SquareClient(
        config=integration_config,
        connection_store=ConnectionStore(tmp_path / "connections.json"),
    )
    async with client:
        yield client

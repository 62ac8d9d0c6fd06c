"""Shared fixtures for unit tests."""

from collections.abc import AsyncIterator

import httpx
import pytest

from square_giftcard.config import SquareConfig, SquareEnvironment, SquareOAuthConfig

from tests.fakes import FakeSquare


@pytest.fixture
def oauth_config() -> SquareOAuthConfig:
    """Create a test OAuth configuration."""
    return SquareOAuthConfig(
        client_id="sq0idp-test",
        client_secret="sq0csp-test-secret",
        redirect_uri="https://app.example.com/square/callback",
        environment=SquareEnvironment.SANDBOX,
    )


@pytest.fixture
def config() -> SquareConfig:
    """Create a test seller configuration."""
    return SquareConfig(access_token="EAAA-test-token", location_id="LOC123")


@pytest.fixture
def fake_square() -> FakeSquare:
    return FakeSquare()


@pytest.fixture
async def http_client(fake_square: FakeSquare) -> AsyncIterator[httpx.AsyncClient]:
    async with fake_square.client() as client:
        yield client

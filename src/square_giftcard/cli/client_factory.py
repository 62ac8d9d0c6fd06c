"""Client factory for CLI commands."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from square_giftcard.auth import ConnectionStore
from square_giftcard.client import SquareClient
from square_giftcard.exceptions import SquareConfigError

if TYPE_CHECKING:
    from square_giftcard.api.payment_links import PaymentLinksAPI
    from square_giftcard.cli.config import CLIConfig


@asynccontextmanager
async def get_client(config: CLIConfig) -> AsyncGenerator[SquareClient]:
    """Create and configure a SquareClient for CLI use.

    This context manager:
    1. Loads credentials from config file with env var overrides
    2. Uses environment-specific connection storage (XDG_DATA_HOME)
    3. Manages connection pooling lifecycle

    Usage:
        async with get_client(cli_config) as client:
            link = await client.payment_links.get_payment_link(link_id)
    """
    client = SquareClient(
        config.load_oauth_config(),
        config.load_config(),
        connection_store=ConnectionStore(path=config.connections_path),
    )

    async with client:
        yield client


def payment_links_api(client: SquareClient, config: CLIConfig) -> PaymentLinksAPI:
    """Pick the payment links adapter for this invocation.

    With ``--merchant`` the stored connection's token is used with the
    configured location; otherwise the configured access token.
    """
    if config.merchant_id is None:
        return client.payment_links

    location_id = config.location_id()
    if not location_id:
        msg = "Square configuration is missing: SQUARE_LOCATION_ID"
        raise SquareConfigError(msg, missing=["SQUARE_LOCATION_ID"])
    return client.payment_links_for(config.merchant_id, location_id)

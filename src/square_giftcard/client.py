"""Main Square gift card client."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from square_giftcard.api.payment_links import PaymentLinksAPI
from square_giftcard.auth import ConnectionStore, SquareOAuth
from square_giftcard.config import DEFAULT_TIMEOUT, SquareConfig, SquareOAuthConfig
from square_giftcard.exceptions import SquareConfigError, SquareTokenError
from square_giftcard.models.auth import MerchantConnection, OAuthResult, RevokeResult

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)


class SquareClient:
    """Square client wiring OAuth, payment links and connection storage.

    Usage (context manager - recommended for connection pooling):
        async with SquareClient(oauth_config, config) as client:
            link = await client.payment_links.create_gift_card_payment_link(options)

    Usage (external HTTP client - shared across integrations):
        http_client = httpx.AsyncClient(timeout=30.0)
        client = SquareClient(oauth_config, config, http_client=http_client)
        # Client uses shared pool, doesn't close it

    Usage (no pooling - creates connection per request):
        client = SquareClient(config=config)
        link = await client.payment_links.get_payment_link("LINK_ID")
    """

    def __init__(
        self,
        oauth_config: SquareOAuthConfig | None = None,
        config: SquareConfig | None = None,
        *,
        connection_store: ConnectionStore | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            oauth_config: App credentials. Without them ``oauth`` is
                unavailable and reports SERVICE_UNAVAILABLE.
            config: Seller access token and location. Without it
                ``payment_links`` raises SquareConfigError.
            connection_store: Optional merchant connection storage
            http_client: Optional httpx.AsyncClient for connection pooling.
                        If provided, the client will use this pool and NOT close it.
        """
        self.oauth_config = oauth_config
        self.config = config
        self.connection_store = connection_store or ConnectionStore()

        # HTTP client management
        self._http_client = http_client
        self._owns_http_client = http_client is None

        self.oauth = SquareOAuth(oauth_config, http_client)
        self._payment_links = PaymentLinksAPI(config, http_client) if config else None

    @property
    def payment_links(self) -> PaymentLinksAPI:
        """Payment links adapter.

        Raises:
            SquareConfigError: If no seller configuration was given
        """
        if self._payment_links is None:
            msg = "Square configuration is missing: SQUARE_ACCESS_TOKEN, SQUARE_LOCATION_ID"
            raise SquareConfigError(msg, missing=["SQUARE_ACCESS_TOKEN", "SQUARE_LOCATION_ID"])
        return self._payment_links

    def _set_http_client(self, http_client: httpx.AsyncClient | None) -> None:
        """Update HTTP client on all API modules."""
        self._http_client = http_client
        self.oauth.set_http_client(http_client)
        if self._payment_links is not None:
            self._payment_links.set_http_client(http_client)

    def _timeout(self) -> float:
        for cfg in (self.config, self.oauth_config):
            if cfg is not None:
                return cfg.timeout
        return DEFAULT_TIMEOUT

    async def open(self) -> None:
        """Open connection pool for HTTP requests."""
        if self._http_client is None and self._owns_http_client:
            self._set_http_client(httpx.AsyncClient(timeout=self._timeout()))

    async def close(self) -> None:
        """Close connection pool.

        Only closes the pool if this client owns it (not external).
        """
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._set_http_client(None)

    async def __aenter__(self) -> SquareClient:
        """Async context manager entry - opens connection pool."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes connection pool."""
        await self.close()

    @classmethod
    def from_env(cls, *, connection_store: ConnectionStore | None = None) -> SquareClient:
        """Create client from environment variables.

        OAuth reads SQUARE_OAUTH_CLIENT_ID / SQUARE_OAUTH_CLIENT_SECRET and
        payment links read SQUARE_ACCESS_TOKEN / SQUARE_LOCATION_ID. Either
        half may be missing; the other still works.
        """
        try:
            oauth_config = SquareOAuthConfig.from_env()
        except SquareConfigError as e:
            logger.warning("%s", e.message)
            oauth_config = None

        try:
            config = SquareConfig.from_env()
        except SquareConfigError as e:
            logger.info("%s", e.message)
            config = None

        return cls(oauth_config, config, connection_store=connection_store)

    # -------------------------------------------------------------------------
    # Merchant connections
    # -------------------------------------------------------------------------

    async def connect_merchant(
        self,
        code: str,
        code_verifier: str | None = None,
    ) -> OAuthResult:
        """Exchange a callback code and store the merchant's grant."""
        result = await self.oauth.exchange_code_for_token(code, code_verifier)
        if result.success and result.token is not None:
            self.connection_store.save(result.token)
        return result

    async def refresh_connection(self, merchant_id: str) -> OAuthResult:
        """Refresh a stored merchant's token and save the new one.

        Raises:
            SquareTokenError: If the merchant has no stored connection or
                the connection has no refresh token
        """
        connection = self.connection_store.require(merchant_id)
        if not connection.token.refresh_token:
            msg = f"Stored connection for merchant {merchant_id} has no refresh token"
            raise SquareTokenError(msg, merchant_id=merchant_id)

        result = await self.oauth.refresh_token(connection.token.refresh_token)
        if result.success and result.token is not None:
            token = result.token
            if not token.merchant_id:
                token = token.model_copy(update={"merchant_id": merchant_id})
            self.connection_store.save(token)
        return result

    async def revoke_connection(self, merchant_id: str) -> RevokeResult:
        """Revoke a stored merchant's token and forget the connection."""
        connection = self.connection_store.require(merchant_id)
        result = await self.oauth.revoke_token(connection.token.access_token, merchant_id)
        if result.success:
            self.connection_store.remove(merchant_id)
        return result

    def get_connection(self, merchant_id: str) -> MerchantConnection | None:
        """Load a stored merchant connection."""
        return self.connection_store.get(merchant_id)

    def payment_links_for(self, merchant_id: str, location_id: str) -> PaymentLinksAPI:
        """Payment links adapter acting on behalf of a connected merchant.

        Uses the stored access token with the environment and timeout of
        the app's OAuth configuration.

        Raises:
            SquareTokenError: If the connection is missing or expired
        """
        connection = self.connection_store.require(merchant_id)
        if connection.token.is_expired():
            msg = f"Access token for merchant {merchant_id} has expired"
            raise SquareTokenError(msg, merchant_id=merchant_id, expired=True)

        base = self.oauth_config or self.config
        kwargs = {}
        if base is not None:
            kwargs = {
                "environment": base.environment,
                "timeout": base.timeout,
                "square_version": base.square_version,
            }
        config = SquareConfig(
            access_token=connection.token.access_token,
            location_id=location_id,
            **kwargs,
        )
        return PaymentLinksAPI(config, self._http_client)

"""OAuth 2.0 authorization-code flow against Square."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from square_giftcard.api.base import BaseAPI
from square_giftcard.api.types import GrantType
from square_giftcard.auth import pkce
from square_giftcard.auth.scopes import AVAILABLE_SCOPES, REQUIRED_SCOPES
from square_giftcard.config import SquareOAuthConfig
from square_giftcard.exceptions import SquareAPIError, SquareConfigError
from square_giftcard.models.auth import (
    AuthorizationUrlResult,
    OAuth2Token,
    OAuthErrorCode,
    OAuthResult,
    PKCEPair,
    RevokeResult,
    TokenStatus,
    TokenStatusResult,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "Square OAuth service not initialized"


class SquareOAuth(BaseAPI):
    """OAuth handler for connecting Square merchant accounts.

    Implements the authorization-code flow:
    1. Build the authorization URL (with a fresh state, optionally PKCE)
    2. Merchant approves on Square and is redirected back with a code
    3. Exchange the code for an access token
    4. Refresh, introspect or revoke the token later

    Provider-side failures never raise: every network operation returns a
    result object with ``success`` and, on failure, an ``error_code``.
    Without credentials the handler is "unavailable" and every network
    operation returns ``SERVICE_UNAVAILABLE`` without touching the network.
    """

    config: SquareOAuthConfig | None  # type: ignore[assignment]

    def __init__(
        self,
        config: SquareOAuthConfig | None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(config, http_client)  # type: ignore[arg-type]
        if config is None:
            logger.warning(
                "Square OAuth credentials not provided. OAuth features will be unavailable."
            )
        else:
            logger.info("Square OAuth initialized for %s", config.environment)

    @classmethod
    def from_env(cls, http_client: httpx.AsyncClient | None = None) -> SquareOAuth:
        """Create from environment variables, degrading to unavailable.

        Missing SQUARE_OAUTH_CLIENT_ID / SQUARE_OAUTH_CLIENT_SECRET never
        raise here; check ``is_available`` before offering a connect flow.
        """
        try:
            config = SquareOAuthConfig.from_env()
        except SquareConfigError as e:
            logger.warning("%s", e.message)
            config = None
        return cls(config, http_client)

    @property
    def is_available(self) -> bool:
        """Check whether client credentials were configured."""
        return self.config is not None

    # -------------------------------------------------------------------------
    # Authorization URL
    # -------------------------------------------------------------------------

    def get_authorization_url(
        self,
        state: str,
        scopes: Sequence[str] = (),
        session_id: str | None = None,
        *,
        code_challenge: str | None = None,
    ) -> AuthorizationUrlResult:
        """Build the URL that sends the merchant to Square's consent page.

        Args:
            state: Unguessable per-attempt value from ``generate_state``.
                Store it and check it with ``validate_state`` on callback.
            scopes: Permissions to request (space-joined in the URL)
            session_id: Optional value passed through as ``session``
            code_challenge: PKCE challenge from ``generate_pkce_pair``; the
                matching verifier must then go to ``exchange_code_for_token``

        Returns:
            AuthorizationUrlResult with ``url`` on success
        """
        if self.config is None:
            return AuthorizationUrlResult(
                success=False,
                error=UNAVAILABLE_MESSAGE,
                error_code=OAuthErrorCode.SERVICE_UNAVAILABLE,
            )

        params: dict[str, str] = {
            "client_id": self.config.client_id,
            "response_type": "code",
        }
        if self.config.redirect_uri:
            params["redirect_uri"] = self.config.redirect_uri
        params["state"] = state

        if scopes:
            params["scope"] = " ".join(scopes)

        if session_id:
            params["session"] = session_id

        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"

        return AuthorizationUrlResult(
            success=True,
            url=f"{self.config.authorize_url}?{urlencode(params)}",
        )

    # -------------------------------------------------------------------------
    # Token endpoint
    # -------------------------------------------------------------------------

    async def exchange_code_for_token(
        self,
        code: str,
        code_verifier: str | None = None,
    ) -> OAuthResult:
        """Exchange an authorization code for an access token.

        Args:
            code: The ``code`` query parameter from the callback
            code_verifier: The PKCE verifier, required if the authorization
                URL carried a code challenge

        Returns:
            OAuthResult with the token, or TOKEN_EXCHANGE_FAILED /
            INVALID_RESPONSE / UNKNOWN_ERROR
        """
        if self.config is None:
            return self._unavailable_result()

        body: dict[str, Any] = {"code": code}
        if self.config.redirect_uri:
            body["redirect_uri"] = self.config.redirect_uri
        if code_verifier:
            body["code_verifier"] = code_verifier

        return await self._obtain_token(
            self.config,
            "authorization_code",
            body,
            failure_code=OAuthErrorCode.TOKEN_EXCHANGE_FAILED,
            failure_message="Failed to exchange code for token",
        )

    async def refresh_token(self, refresh_token: str) -> OAuthResult:
        """Get a new access token from a refresh token.

        Call before ``expires_at``; nothing here schedules it. Concurrent
        refreshes with the same refresh token are not deduplicated.

        Returns:
            OAuthResult with the new token, or TOKEN_REFRESH_FAILED /
            INVALID_RESPONSE / UNKNOWN_ERROR
        """
        if self.config is None:
            return self._unavailable_result()

        return await self._obtain_token(
            self.config,
            "refresh_token",
            {"refresh_token": refresh_token},
            failure_code=OAuthErrorCode.TOKEN_REFRESH_FAILED,
            failure_message="Failed to refresh token",
        )

    async def _obtain_token(
        self,
        config: SquareOAuthConfig,
        grant_type: GrantType,
        grant_params: dict[str, Any],
        *,
        failure_code: OAuthErrorCode,
        failure_message: str,
    ) -> OAuthResult:
        body = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "grant_type": grant_type,
            **grant_params,
        }

        try:
            data = await self._post("/oauth2/token", body)
        except SquareAPIError as e:
            logger.error("Token %s error: %s", grant_type, e.codes or e.message)
            first = e.errors[0] if e.errors else None
            return OAuthResult(
                success=False,
                error=(first.detail if first and first.detail else failure_message),
                error_code=failure_code,
                provider_error_code=first.code if first else e.error_code,
                errors=e.errors,
            )
        except Exception as e:
            logger.exception("Token %s error", grant_type)
            return OAuthResult(
                success=False,
                error=str(e) or failure_message,
                error_code=OAuthErrorCode.UNKNOWN_ERROR,
            )

        if not data.get("access_token"):
            return OAuthResult(
                success=False,
                error="No access token returned",
                error_code=OAuthErrorCode.INVALID_RESPONSE,
            )

        try:
            token = OAuth2Token.model_validate(data)
        except ValidationError as e:
            return OAuthResult(
                success=False,
                error=f"Malformed token response: {e.error_count()} invalid field(s)",
                error_code=OAuthErrorCode.INVALID_RESPONSE,
            )

        logger.info("Obtained access token via %s for merchant %s", grant_type, token.merchant_id)
        return OAuthResult(success=True, token=token)

    # -------------------------------------------------------------------------
    # Revocation and introspection
    # -------------------------------------------------------------------------

    async def revoke_token(
        self,
        token: str,
        merchant_id: str | None = None,
    ) -> RevokeResult:
        """Revoke an access token (and the merchant's grant for this app).

        Revoking an already revoked token reports Square's failure in the
        result rather than raising.
        """
        if self.config is None:
            return RevokeResult(
                success=False,
                error=UNAVAILABLE_MESSAGE,
                error_code=OAuthErrorCode.SERVICE_UNAVAILABLE,
            )

        body: dict[str, Any] = {
            "client_id": self.config.client_id,
            "access_token": token,
        }
        if merchant_id:
            body["merchant_id"] = merchant_id

        try:
            data = await self._post(
                "/oauth2/revoke",
                body,
                headers={"Authorization": f"Client {self.config.client_secret}"},
            )
        except SquareAPIError as e:
            logger.error("Token revocation error: %s", e.codes or e.message)
            first = e.errors[0] if e.errors else None
            return RevokeResult(
                success=False,
                error=(first.detail if first and first.detail else "Failed to revoke token"),
                error_code=OAuthErrorCode.TOKEN_REVOKE_FAILED,
                provider_error_code=first.code if first else e.error_code,
                errors=e.errors,
            )
        except Exception as e:
            logger.exception("Token revocation error")
            return RevokeResult(
                success=False,
                error=str(e) or "Failed to revoke token",
                error_code=OAuthErrorCode.UNKNOWN_ERROR,
            )

        if not data.get("success"):
            return RevokeResult(
                success=False,
                error="Square did not confirm the revocation",
                error_code=OAuthErrorCode.INVALID_RESPONSE,
            )

        logger.info("Revoked access token for merchant %s", merchant_id or "(unspecified)")
        return RevokeResult(success=True)

    def _build_introspection_client(
        self, config: SquareOAuthConfig, access_token: str
    ) -> httpx.AsyncClient:
        """Create a client bound to the token under inspection.

        Separate from the app-level client so the two never share an
        Authorization header.
        """
        return httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {access_token}",
                "Square-Version": config.square_version,
            },
        )

    async def get_token_status(self, access_token: str) -> TokenStatusResult:
        """Look up scopes, expiry and merchant of an access token."""
        if self.config is None:
            return TokenStatusResult(
                success=False,
                error=UNAVAILABLE_MESSAGE,
                error_code=OAuthErrorCode.SERVICE_UNAVAILABLE,
            )

        try:
            async with self._build_introspection_client(self.config, access_token) as client:
                response = await client.post("/oauth2/token/status")
            data = self._handle_response(response)
        except SquareAPIError as e:
            first = e.errors[0] if e.errors else None
            return TokenStatusResult(
                success=False,
                error=(first.detail if first and first.detail else "Failed to get token status"),
                error_code=OAuthErrorCode.TOKEN_STATUS_FAILED,
                provider_error_code=first.code if first else e.error_code,
                errors=e.errors,
            )
        except Exception as e:
            logger.exception("Token status error")
            return TokenStatusResult(
                success=False,
                error=str(e) or "Failed to get token status",
                error_code=OAuthErrorCode.UNKNOWN_ERROR,
            )

        try:
            status = TokenStatus.model_validate(data)
        except ValidationError:
            return TokenStatusResult(
                success=False,
                error="Malformed token status response",
                error_code=OAuthErrorCode.INVALID_RESPONSE,
            )
        return TokenStatusResult(success=True, status=status)

    # -------------------------------------------------------------------------
    # Local helpers (no network, available without credentials)
    # -------------------------------------------------------------------------

    @staticmethod
    def generate_pkce_pair() -> PKCEPair:
        """Generate a fresh PKCE verifier/challenge pair."""
        return pkce.generate_pkce_pair()

    @staticmethod
    def generate_state() -> str:
        """Generate a fresh CSRF state value."""
        return pkce.generate_state()

    @staticmethod
    def validate_state(provided_state: str | None, expected_state: str | None) -> bool:
        """Constant-time comparison of callback state with the stored one."""
        return pkce.validate_state(provided_state, expected_state)

    @staticmethod
    def get_available_scopes() -> list[str]:
        """All Square OAuth scopes."""
        return list(AVAILABLE_SCOPES)

    @staticmethod
    def get_required_scopes() -> list[str]:
        """Scopes the gift card storefront requests."""
        return list(REQUIRED_SCOPES)

    def _unavailable_result(self) -> OAuthResult:
        return OAuthResult(
            success=False,
            error=UNAVAILABLE_MESSAGE,
            error_code=OAuthErrorCode.SERVICE_UNAVAILABLE,
        )

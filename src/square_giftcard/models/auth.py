"""OAuth token and result models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field

from square_giftcard.models.errors import SquareErrorDetail


class OAuthErrorCode(StrEnum):
    """Failure codes returned by the OAuth adapter."""

    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TOKEN_EXCHANGE_FAILED = "TOKEN_EXCHANGE_FAILED"
    TOKEN_REFRESH_FAILED = "TOKEN_REFRESH_FAILED"
    TOKEN_REVOKE_FAILED = "TOKEN_REVOKE_FAILED"
    TOKEN_STATUS_FAILED = "TOKEN_STATUS_FAILED"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class PKCEPair(BaseModel):
    """PKCE code verifier and its S256 challenge."""

    code_verifier: str = Field(description="Secret kept by the caller until token exchange")
    code_challenge: str = Field(description="base64url(SHA-256(code_verifier))")

    model_config = {"frozen": True}


class OAuth2Token(BaseModel):
    """Access token issued by Square's ObtainToken endpoint."""

    access_token: str = Field(repr=False)
    refresh_token: str | None = Field(default=None, repr=False)
    expires_at: datetime | None = None
    merchant_id: str | None = None
    scopes: list[str] = Field(default_factory=list)
    token_type: str = "bearer"
    short_lived: bool = False
    refresh_token_expires_at: datetime | None = None

    model_config = {"extra": "ignore"}

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the access token has passed its expiry."""
        return self.expires_within(timedelta(0), now=now)

    def expires_within(self, delta: timedelta, now: datetime | None = None) -> bool:
        """Check whether the token expires within ``delta`` of ``now``.

        Tokens without an expiry never report as expiring.
        """
        if self.expires_at is None:
            return False
        now = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= now + delta


class OAuthResult(BaseModel):
    """Outcome of a token exchange or refresh.

    Branch on ``success``; on failure ``error_code`` tells the caller which
    message to show without matching on error text.
    """

    success: bool
    token: OAuth2Token | None = None
    error: str | None = None
    error_code: OAuthErrorCode | None = None
    provider_error_code: str | None = None
    errors: list[SquareErrorDetail] = Field(default_factory=list)


class AuthorizationUrlResult(BaseModel):
    """Outcome of building the browser authorization URL."""

    success: bool
    url: str | None = None
    error: str | None = None
    error_code: OAuthErrorCode | None = None


class RevokeResult(BaseModel):
    """Outcome of a token revocation."""

    success: bool
    error: str | None = None
    error_code: OAuthErrorCode | None = None
    provider_error_code: str | None = None
    errors: list[SquareErrorDetail] = Field(default_factory=list)


class TokenStatus(BaseModel):
    """Introspection data for an access token."""

    scopes: list[str] = Field(default_factory=list)
    expires_at: datetime | None = None
    merchant_id: str | None = None
    client_id: str | None = None

    model_config = {"extra": "ignore"}


class TokenStatusResult(BaseModel):
    """Outcome of a token status lookup."""

    success: bool
    status: TokenStatus | None = None
    error: str | None = None
    error_code: OAuthErrorCode | None = None
    provider_error_code: str | None = None
    errors: list[SquareErrorDetail] = Field(default_factory=list)


class MerchantConnection(BaseModel):
    """A merchant's stored OAuth grant."""

    merchant_id: str
    token: OAuth2Token
    connected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

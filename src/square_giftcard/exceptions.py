"""Typed exceptions for the Square gift-card client."""

from typing import Any

from square_giftcard.models.errors import SquareErrorDetail


class SquareError(Exception):
    """Base exception for all Square client errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SquareConfigError(SquareError, ValueError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        self.missing = missing or []
        super().__init__(message)


class SquareAPIError(SquareError):
    """API request error with status code and Square's error list."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_code: str | None = None,
        errors: list[SquareErrorDetail] | None = None,
        response_body: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.errors = errors or []
        self.response_body = response_body
        super().__init__(message)

    @property
    def codes(self) -> list[str]:
        """Square error codes, in the order Square reported them."""
        return [e.code for e in self.errors if e.code]


class SquareRateLimitError(SquareAPIError):
    """Rate limit exceeded - includes retry information."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 429,
        retry_after: int | None = None,
        errors: list[SquareErrorDetail] | None = None,
    ) -> None:
        self.retry_after = retry_after  # seconds until retry is allowed
        super().__init__(
            message,
            status_code=status_code,
            error_code="RATE_LIMITED",
            errors=errors,
        )


class SquareAuthError(SquareError):
    """Authentication or authorization error."""

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        self.stage = stage  # e.g., "authorize", "callback", "refresh"
        super().__init__(message)


class SquareTokenError(SquareAuthError):
    """Token-specific errors (missing, expired, revoked)."""

    def __init__(
        self,
        message: str,
        *,
        merchant_id: str | None = None,
        expired: bool = False,
    ) -> None:
        self.merchant_id = merchant_id
        self.expired = expired
        super().__init__(message, stage="token_validation")


class SquareValidationError(SquareError):
    """Request validation error before sending to API."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)

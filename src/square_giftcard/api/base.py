"""Base API client with common functionality."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from square_giftcard.exceptions import SquareAPIError, SquareRateLimitError
from square_giftcard.models.errors import parse_errors

if TYPE_CHECKING:
    from square_giftcard.models.errors import SquareErrorDetail

logger = logging.getLogger(__name__)


class EndpointConfig(Protocol):
    """What BaseAPI needs from a config object."""

    @property
    def base_url(self) -> str: ...

    timeout: float
    square_version: str


def _error_message(errors: list[SquareErrorDetail], fallback: str) -> str:
    """Build the single-line message for a Square error list."""
    if not errors:
        return fallback
    first = errors[0]
    return f"Square API Error: {first.detail or first.code or 'Unknown error'}"


def _parse_retry_after(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class BaseAPI:
    """Base class for Square API endpoints.

    Provides common HTTP functionality: versioned headers, JSON bodies,
    error translation and optional connection pooling. Never retries;
    retry policy belongs to the caller (see ``square_giftcard.retry``).
    """

    def __init__(
        self,
        config: EndpointConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self._http_client = http_client

    def set_http_client(self, http_client: httpx.AsyncClient | None) -> None:
        """Set the shared HTTP client for connection pooling."""
        self._http_client = http_client

    def _auth_headers(self) -> dict[str, str]:
        """Authorization headers for this API. Subclasses override."""
        return {}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request and return the raw response.

        Args:
            method: HTTP method
            path: Path under the environment's base URL (e.g., "/oauth2/token")
            params: Query parameters (None values are dropped)
            json_body: JSON request body
            headers: Extra headers; replace the default authorization headers
                when they carry their own Authorization

        Raises:
            httpx.HTTPError: On transport failure or timeout
        """
        url = f"{self.config.base_url}{path}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        request_headers = {
            "Accept": "application/json",
            "Square-Version": self.config.square_version,
            **self._auth_headers(),
            **(headers or {}),
        }
        if json_body is not None:
            request_headers["Content-Type"] = "application/json"

        options: dict[str, Any] = {
            "params": query or None,
            "json": json_body,
            "headers": request_headers,
        }
        logger.debug("%s %s params=%s", method, url, query)

        if self._http_client is not None:
            return await self._http_client.request(method, url, **options)

        # No shared pool: one client per request
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            return await client.request(method, url, **options)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make an API request and return the parsed JSON body.

        Raises:
            SquareAPIError: On API error
            SquareRateLimitError: On rate limit (429)
            httpx.HTTPError: On transport failure, unchanged
        """
        response = await self._send(
            method, path, params=params, json_body=json_body, headers=headers
        )
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        """Handle API response, raising appropriate errors."""
        if response.status_code == 204:
            return {}

        try:
            body = response.json()
        except ValueError:
            body = None

        errors = parse_errors(body)

        if response.status_code == 429:
            raise SquareRateLimitError(
                _error_message(errors, "Rate limit exceeded"),
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
                errors=errors,
            )

        if response.status_code >= 400 or errors:
            if errors:
                logger.error(
                    "Square API error %s: %s",
                    response.status_code,
                    [e.model_dump(exclude_none=True) for e in errors],
                )
            raise SquareAPIError(
                _error_message(errors, f"API error: {response.status_code}"),
                status_code=response.status_code,
                error_code=errors[0].code if errors else None,
                errors=errors,
                response_body=body if isinstance(body, dict) else None,
            )

        if not isinstance(body, dict):
            return {}
        return body

    async def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make a GET request."""
        return await self._request("GET", path, params=params)

    async def _post(
        self,
        path: str,
        json_body: dict[str, Any],
        *,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make a POST request."""
        return await self._request("POST", path, json_body=json_body, headers=headers)

    async def _put(
        self,
        path: str,
        json_body: dict[str, Any],
    ) -> dict[str, Any]:
        """Make a PUT request."""
        return await self._request("PUT", path, json_body=json_body)

    async def _delete(self, path: str) -> dict[str, Any]:
        """Make a DELETE request."""
        return await self._request("DELETE", path)

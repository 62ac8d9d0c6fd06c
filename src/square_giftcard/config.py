"""Configuration management for the Square client."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from square_giftcard.exceptions import SquareConfigError

DEFAULT_SQUARE_VERSION = "2024-12-18"
DEFAULT_TIMEOUT = 30.0


def _get_config_dir() -> Path:
    """Get XDG-compliant config directory."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "square-giftcard"
    return Path.home() / ".config" / "square-giftcard"


class SquareEnvironment(StrEnum):
    """Square environments."""

    SANDBOX = "sandbox"
    PRODUCTION = "production"

    @property
    def base_url(self) -> str:
        """Get the connect host for this environment."""
        if self is SquareEnvironment.PRODUCTION:
            return "https://connect.squareup.com"
        return "https://connect.squareupsandbox.com"

    @classmethod
    def parse(cls, value: str | None) -> SquareEnvironment:
        """Parse an environment name; anything but "production" is sandbox."""
        if value and value.strip().lower() == "production":
            return cls.PRODUCTION
        return cls.SANDBOX


def parse_timeout(raw: str | float, source: str = "timeout") -> float:
    """Validate a timeout in seconds from the environment or a config file."""
    try:
        timeout = float(raw)
    except (TypeError, ValueError):
        msg = f"{source} must be a number of seconds, got {raw!r}"
        raise SquareConfigError(msg) from None
    if not 0 < timeout < float("inf"):
        msg = f"{source} must be a positive number of seconds, got {raw!r}"
        raise SquareConfigError(msg)
    return timeout


def _timeout_from_env() -> float:
    raw = os.environ.get("SQUARE_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    return parse_timeout(raw, "SQUARE_TIMEOUT")


def _read_json(path: Path) -> dict:
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open() as f:
        data = json.load(f)
    return data


@dataclass(frozen=True, slots=True)
class SquareOAuthConfig:
    """Application credentials for Square's OAuth endpoints."""

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str | None = None
    environment: SquareEnvironment = SquareEnvironment.SANDBOX
    timeout: float = DEFAULT_TIMEOUT
    square_version: str = DEFAULT_SQUARE_VERSION

    def __post_init__(self) -> None:
        missing = []
        if not self.client_id:
            missing.append("client_id")
        if not self.client_secret:
            missing.append("client_secret")
        if missing:
            msg = f"Square OAuth configuration is missing: {', '.join(missing)}"
            raise SquareConfigError(msg, missing=missing)

    @property
    def base_url(self) -> str:
        """Get the appropriate base URL based on environment."""
        return self.environment.base_url

    @property
    def authorize_url(self) -> str:
        """Get the browser-facing authorize endpoint."""
        return f"{self.base_url}/oauth2/authorize"

    @classmethod
    def from_env(cls) -> SquareOAuthConfig:
        """Create config from environment variables.

        Expected env vars:
        - SQUARE_OAUTH_CLIENT_ID
        - SQUARE_OAUTH_CLIENT_SECRET
        - SQUARE_OAUTH_REDIRECT_URI (optional)
        - SQUARE_ENVIRONMENT (optional, "sandbox" or "production")
        - SQUARE_TIMEOUT (optional, seconds)
        """
        client_id = os.environ.get("SQUARE_OAUTH_CLIENT_ID")
        client_secret = os.environ.get("SQUARE_OAUTH_CLIENT_SECRET")

        if not client_id or not client_secret:
            missing = [
                name
                for name, value in (
                    ("SQUARE_OAUTH_CLIENT_ID", client_id),
                    ("SQUARE_OAUTH_CLIENT_SECRET", client_secret),
                )
                if not value
            ]
            msg = f"Missing required environment variables: {' and '.join(missing)}"
            raise SquareConfigError(msg, missing=missing)

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=os.environ.get("SQUARE_OAUTH_REDIRECT_URI") or None,
            environment=SquareEnvironment.parse(os.environ.get("SQUARE_ENVIRONMENT")),
            timeout=_timeout_from_env(),
        )

    @classmethod
    def from_file(cls, path: Path | None = None) -> SquareOAuthConfig:
        """Load config from JSON file.

        Default path: ~/.config/square-giftcard/config.json

        Expected format:
        {
            "client_id": "...",
            "client_secret": "...",
            "redirect_uri": "...",
            "environment": "sandbox"
        }
        """
        data = _read_json(path or _get_config_dir() / "config.json")

        try:
            return cls(
                client_id=data["client_id"],
                client_secret=data["client_secret"],
                redirect_uri=data.get("redirect_uri"),
                environment=SquareEnvironment.parse(data.get("environment")),
                timeout=parse_timeout(data.get("timeout", DEFAULT_TIMEOUT)),
            )
        except KeyError as e:
            msg = f"Config file is missing key: {e.args[0]}"
            raise SquareConfigError(msg, missing=[e.args[0]]) from None

    @classmethod
    def load(cls) -> SquareOAuthConfig:
        """Load config from environment or file (env takes precedence).

        The file is only consulted when credentials are absent from the
        environment; invalid environment values are reported as-is.
        """
        try:
            return cls.from_env()
        except SquareConfigError as e:
            if not e.missing:
                raise
            return cls.from_file()


@dataclass(frozen=True, slots=True)
class SquareConfig:
    """Merchant credentials for Square's Checkout API."""

    access_token: str = field(repr=False)
    location_id: str
    environment: SquareEnvironment = SquareEnvironment.SANDBOX
    timeout: float = DEFAULT_TIMEOUT
    square_version: str = DEFAULT_SQUARE_VERSION

    def __post_init__(self) -> None:
        missing = []
        if not self.access_token:
            missing.append("access_token")
        if not self.location_id:
            missing.append("location_id")
        if missing:
            msg = f"Square configuration is missing: {', '.join(missing)}"
            raise SquareConfigError(msg, missing=missing)

    @property
    def base_url(self) -> str:
        """Get the appropriate base URL based on environment."""
        return self.environment.base_url

    @classmethod
    def from_env(cls) -> SquareConfig:
        """Create config from environment variables.

        Expected env vars:
        - SQUARE_ACCESS_TOKEN
        - SQUARE_LOCATION_ID
        - SQUARE_ENVIRONMENT (optional)
        - SQUARE_TIMEOUT (optional, seconds)
        """
        access_token = os.environ.get("SQUARE_ACCESS_TOKEN")
        location_id = os.environ.get("SQUARE_LOCATION_ID")

        if not access_token or not location_id:
            missing = [
                name
                for name, value in (
                    ("SQUARE_ACCESS_TOKEN", access_token),
                    ("SQUARE_LOCATION_ID", location_id),
                )
                if not value
            ]
            msg = f"Square configuration is missing: {', '.join(missing)}"
            raise SquareConfigError(msg, missing=missing)

        return cls(
            access_token=access_token,
            location_id=location_id,
            environment=SquareEnvironment.parse(os.environ.get("SQUARE_ENVIRONMENT")),
            timeout=_timeout_from_env(),
        )

    @classmethod
    def from_file(cls, path: Path | None = None) -> SquareConfig:
        """Load config from JSON file.

        Default path: ~/.config/square-giftcard/config.json

        Expected format:
        {
            "access_token": "...",
            "location_id": "...",
            "environment": "sandbox"
        }
        """
        data = _read_json(path or _get_config_dir() / "config.json")

        try:
            return cls(
                access_token=data["access_token"],
                location_id=data["location_id"],
                environment=SquareEnvironment.parse(data.get("environment")),
                timeout=parse_timeout(data.get("timeout", DEFAULT_TIMEOUT)),
            )
        except KeyError as e:
            msg = f"Config file is missing key: {e.args[0]}"
            raise SquareConfigError(msg, missing=[e.args[0]]) from None

    @classmethod
    def load(cls) -> SquareConfig:
        """Load config from environment or file (env takes precedence).

        The file is only consulted when credentials are absent from the
        environment; invalid environment values are reported as-is.
        """
        try:
            return cls.from_env()
        except SquareConfigError as e:
            if not e.missing:
                raise
            return cls.from_file()

"""CLI configuration with XDG-compliant paths and environment variable overrides."""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from square_giftcard.config import (
    DEFAULT_TIMEOUT,
    SquareConfig,
    SquareEnvironment,
    SquareOAuthConfig,
    parse_timeout,
)

logger = logging.getLogger(__name__)


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def _default_config_dir() -> Path:
    """Get XDG-compliant config directory for credentials.

    Uses XDG_CONFIG_HOME if set, otherwise ~/.config/square-giftcard.
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "square-giftcard"
    return Path.home() / ".config" / "square-giftcard"


def _default_data_dir() -> Path:
    """Get XDG-compliant data directory for merchant connections.

    Uses XDG_DATA_HOME if set, otherwise ~/.local/share/square-giftcard.
    """
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / "square-giftcard"
    return Path.home() / ".local" / "share" / "square-giftcard"


# File key -> environment variable that overrides it
_OVERRIDES = {
    "client_id": "SQUARE_OAUTH_CLIENT_ID",
    "client_secret": "SQUARE_OAUTH_CLIENT_SECRET",
    "redirect_uri": "SQUARE_OAUTH_REDIRECT_URI",
    "access_token": "SQUARE_ACCESS_TOKEN",
    "location_id": "SQUARE_LOCATION_ID",
}


@dataclass
class CLIConfig:
    """Configuration passed through Typer context.

    Attributes:
        sandbox: Whether to use sandbox (True) or production (False) environment.
        verbose: Enable verbose output.
        merchant_id: Act for this connected merchant instead of the
            configured access token.
        config_dir: Directory for configuration files (credentials).
        data_dir: Directory for data files (merchant connections).

    Directory Structure:
        config_dir/
        ├── sandbox.json        # Sandbox credentials
        └── production.json     # Production credentials

        data_dir/
        ├── sandbox-connections.json     # Sandbox merchant connections
        └── production-connections.json  # Production merchant connections
    """

    sandbox: bool = True
    verbose: bool = False
    merchant_id: str | None = None
    config_dir: Path = field(default_factory=_default_config_dir)
    data_dir: Path = field(default_factory=_default_data_dir)

    @property
    def environment(self) -> SquareEnvironment:
        """Get the environment."""
        return SquareEnvironment.SANDBOX if self.sandbox else SquareEnvironment.PRODUCTION

    @property
    def connections_path(self) -> Path:
        """Get the connection store path for current environment."""
        return self.data_dir / f"{self.environment}-connections.json"

    @property
    def credentials_path(self) -> Path:
        """Get the credentials file path for current environment."""
        return self.config_dir / f"{self.environment}.json"

    def load_settings(self) -> dict[str, Any]:
        """Load settings from config file with environment variable overrides.

        Loading priority:
        1. Load from environment-specific config file (sandbox.json or production.json)
        2. Override individual values with environment variables if set

        Unreadable files are ignored with a warning.
        """
        data: dict[str, Any] = {}

        if self.credentials_path.exists():
            try:
                with self.credentials_path.open() as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Failed to read %s: %s", self.credentials_path, e)
                data = {}

        for key, env_var in _OVERRIDES.items():
            if value := os.environ.get(env_var):
                data[key] = value

        return data

    def _timeout(self, data: dict[str, Any]) -> float:
        raw = os.environ.get("SQUARE_TIMEOUT") or data.get("timeout")
        if raw is None:
            return DEFAULT_TIMEOUT
        return parse_timeout(raw)

    def load_oauth_config(self) -> SquareOAuthConfig | None:
        """Build the OAuth app config, or None if credentials are missing."""
        data = self.load_settings()
        if not data.get("client_id") or not data.get("client_secret"):
            return None
        return SquareOAuthConfig(
            client_id=data["client_id"],
            client_secret=data["client_secret"],
            redirect_uri=data.get("redirect_uri") or None,
            environment=self.environment,
            timeout=self._timeout(data),
        )

    def load_config(self) -> SquareConfig | None:
        """Build the seller config, or None if token or location is missing."""
        data = self.load_settings()
        if not data.get("access_token") or not data.get("location_id"):
            return None
        return SquareConfig(
            access_token=data["access_token"],
            location_id=data["location_id"],
            environment=self.environment,
            timeout=self._timeout(data),
        )

    def location_id(self) -> str | None:
        """Configured location, used when acting for a connected merchant."""
        return self.load_settings().get("location_id") or None

    def save_credentials(self, **values: str) -> None:
        """Merge values into the environment-specific config file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        data: dict[str, Any] = {}
        if self.credentials_path.exists():
            with self.credentials_path.open() as f:
                data = json.load(f)
        data.update({k: v for k, v in values.items() if v})

        with self.credentials_path.open("w") as f:
            json.dump(data, f, indent=2)

        # Set restrictive permissions (owner read/write only)
        self.credentials_path.chmod(0o600)

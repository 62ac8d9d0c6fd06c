"""Merchant connection storage and persistence."""

import json
import logging
import os
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from square_giftcard.exceptions import SquareTokenError
from square_giftcard.models.auth import MerchantConnection, OAuth2Token

logger = logging.getLogger(__name__)


def _get_connections_path() -> Path:
    """Get default connection storage path."""
    xdg_data = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return base / "square-giftcard" / "connections.json"


class ConnectionStore:
    """Persistent storage for merchant OAuth grants.

    Stores one connection per merchant in a JSON file. For production use,
    consider encrypting the file or using a secrets manager.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or _get_connections_path()

    def _read(self) -> dict[str, MerchantConnection]:
        if not self.path.exists():
            return {}

        try:
            with self.path.open() as f:
                data = json.load(f)
            return {
                merchant_id: MerchantConnection.model_validate(entry)
                for merchant_id, entry in data.items()
            }
        except (json.JSONDecodeError, AttributeError, ValidationError):
            logger.warning("Ignoring unreadable connection file %s", self.path)
            return {}

    def _write(self, connections: dict[str, MerchantConnection]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            merchant_id: connection.model_dump(mode="json")
            for merchant_id, connection in connections.items()
        }

        with self.path.open("w") as f:
            json.dump(data, f, indent=2)

        # Set restrictive permissions (owner read/write only)
        self.path.chmod(0o600)

    def save(self, token: OAuth2Token) -> MerchantConnection:
        """Store a token, creating or replacing the merchant's connection."""
        if not token.merchant_id:
            msg = "Token has no merchant_id; cannot store connection"
            raise SquareTokenError(msg)

        connections = self._read()
        existing = connections.get(token.merchant_id)
        now = datetime.now(UTC)

        # Square omits the refresh token on some refresh responses
        if existing and not token.refresh_token:
            token = token.model_copy(update={"refresh_token": existing.token.refresh_token})

        connection = MerchantConnection(
            merchant_id=token.merchant_id,
            token=token,
            connected_at=existing.connected_at if existing else now,
            updated_at=now,
        )
        connections[token.merchant_id] = connection
        self._write(connections)
        return connection

    def get(self, merchant_id: str) -> MerchantConnection | None:
        """Load one merchant's connection, or None if not stored."""
        return self._read().get(merchant_id)

    def require(self, merchant_id: str) -> MerchantConnection:
        """Load one merchant's connection or raise SquareTokenError."""
        connection = self.get(merchant_id)
        if connection is None:
            msg = f"No stored connection for merchant {merchant_id}"
            raise SquareTokenError(msg, merchant_id=merchant_id)
        return connection

    def list(self) -> list[MerchantConnection]:
        """All stored connections, oldest first."""
        return sorted(self._read().values(), key=lambda c: c.connected_at)

    def remove(self, merchant_id: str) -> bool:
        """Remove a merchant's connection. Returns False if none was stored."""
        connections = self._read()
        if connections.pop(merchant_id, None) is None:
            return False
        self._write(connections)
        return True

    def clear(self) -> None:
        """Remove all stored connections."""
        if self.path.exists():
            self.path.unlink()

    def has_connection(self, merchant_id: str | None = None) -> bool:
        """Check if a connection (or any connection) is stored."""
        connections = self._read()
        if merchant_id is None:
            return bool(connections)
        return merchant_id in connections

"""OAuth authentication for Square merchant accounts."""

from square_giftcard.auth.oauth import SquareOAuth
from square_giftcard.auth.pkce import generate_pkce_pair, generate_state, validate_state
from square_giftcard.auth.tokens import ConnectionStore

__all__ = [
    "ConnectionStore",
    "SquareOAuth",
    "generate_pkce_pair",
    "generate_state",
    "validate_state",
]

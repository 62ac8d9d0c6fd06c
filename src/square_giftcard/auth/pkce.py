"""CSRF state and PKCE (RFC 7636) helpers."""

import base64
import hashlib
import hmac
import secrets

from square_giftcard.models.auth import PKCEPair


def _b64url(data: bytes) -> str:
    """Encode bytes as unpadded base64url."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def code_challenge_for(code_verifier: str) -> str:
    """Derive the S256 code challenge for a verifier."""
    return _b64url(hashlib.sha256(code_verifier.encode("ascii")).digest())


def generate_pkce_pair() -> PKCEPair:
    """Generate a fresh PKCE verifier/challenge pair.

    The verifier is 32 random bytes, base64url encoded (43 characters).
    Generate one per authorization attempt and never reuse it.
    """
    code_verifier = _b64url(secrets.token_bytes(32))
    return PKCEPair(
        code_verifier=code_verifier,
        code_challenge=code_challenge_for(code_verifier),
    )


def generate_state() -> str:
    """Generate an unguessable OAuth state value (32 random bytes, base64url)."""
    return _b64url(secrets.token_bytes(32))


def validate_state(provided_state: str | None, expected_state: str | None) -> bool:
    """Compare a callback state against the stored one in constant time.

    Fails closed: None or empty on either side never matches, so two empty
    strings return False. Values of different lengths return False.
    """
    if not provided_state or not expected_state:
        return False
    return hmac.compare_digest(
        provided_state.encode("utf-8"),
        expected_state.encode("utf-8"),
    )

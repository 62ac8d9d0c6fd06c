"""Square gift card client library.

A typed, async Python client for Square's OAuth and Payment Links APIs.

Example:
    from square_giftcard import GiftCardLinkOptions, SquareClient

    # Create client from environment variables
    client = SquareClient.from_env()

    # Connect a merchant (first time)
    state = client.oauth.generate_state()
    result = client.oauth.get_authorization_url(state, client.oauth.get_required_scopes())
    print(f"Visit: {result.url}")
    # ... on callback, after validate_state(callback_state, state):
    await client.connect_merchant(code)

    # Sell a gift card
    async with client:
        link = await client.payment_links.create_gift_card_payment_link(
            GiftCardLinkOptions(amount=50, recipient_name="Jane", sender_name="John")
        )
    print(link.url)
"""

from square_giftcard.client import SquareClient
from square_giftcard.config import SquareConfig, SquareEnvironment, SquareOAuthConfig
from square_giftcard.exceptions import (
    SquareAPIError,
    SquareAuthError,
    SquareConfigError,
    SquareError,
    SquareRateLimitError,
    SquareTokenError,
    SquareValidationError,
)
from square_giftcard.models import (
    CheckoutOptions,
    GiftCardLinkOptions,
    OAuthErrorCode,
    PaymentLink,
    PaymentLinkUpdate,
    QuickPayOptions,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "SquareClient",
    "SquareConfig",
    "SquareEnvironment",
    "SquareOAuthConfig",
    # Models (commonly used)
    "CheckoutOptions",
    "GiftCardLinkOptions",
    "OAuthErrorCode",
    "PaymentLink",
    "PaymentLinkUpdate",
    "QuickPayOptions",
    # Exceptions
    "SquareAPIError",
    "SquareAuthError",
    "SquareConfigError",
    "SquareError",
    "SquareRateLimitError",
    "SquareTokenError",
    "SquareValidationError",
]

"""Pydantic models for Square OAuth and Checkout payloads."""

from square_giftcard.models.auth import (
    AuthorizationUrlResult,
    MerchantConnection,
    OAuth2Token,
    OAuthErrorCode,
    OAuthResult,
    PKCEPair,
    RevokeResult,
    TokenStatus,
    TokenStatusResult,
)
from square_giftcard.models.errors import SquareErrorDetail
from square_giftcard.models.payment_links import (
    AcceptedPaymentMethods,
    Address,
    CheckoutOptions,
    CustomField,
    DeletePaymentLinkResponse,
    GiftCardLinkOptions,
    MoneyAmount,
    PaymentLink,
    PaymentLinkListResponse,
    PaymentLinkUpdate,
    PrePopulatedData,
    QuickPayOptions,
    ShippingFee,
)

__all__ = [
    # Auth
    "AuthorizationUrlResult",
    "MerchantConnection",
    "OAuth2Token",
    "OAuthErrorCode",
    "OAuthResult",
    "PKCEPair",
    "RevokeResult",
    "TokenStatus",
    "TokenStatusResult",
    # Errors
    "SquareErrorDetail",
    # Payment link options
    "AcceptedPaymentMethods",
    "Address",
    "CheckoutOptions",
    "CustomField",
    "GiftCardLinkOptions",
    "MoneyAmount",
    "PaymentLinkUpdate",
    "PrePopulatedData",
    "QuickPayOptions",
    "ShippingFee",
    # Payment link responses
    "DeletePaymentLinkResponse",
    "PaymentLink",
    "PaymentLinkListResponse",
]

"""Square API client modules."""

from square_giftcard.api.payment_links import PaymentLinksAPI

__all__ = ["PaymentLinksAPI"]

"""Payment link models.

Option models describe what the caller wants to sell, in decimal currency
units. Response models mirror Square's PaymentLink resource and are passed
through mostly as-is.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

_FROZEN = {"frozen": True, "extra": "forbid"}


# =============================================================================
# Request options
# =============================================================================


class MoneyAmount(BaseModel):
    """A decimal amount with its ISO 4217 currency."""

    amount: Decimal = Field(gt=0, description="Amount in currency units, e.g. 49.99")
    currency: str = Field(default="USD", min_length=3, max_length=3)

    model_config = _FROZEN


class AcceptedPaymentMethods(BaseModel):
    """Wallets offered on the hosted checkout page.

    ``None`` means "use the default": wallets on, Afterpay/Clearpay off.
    """

    apple_pay: bool | None = None
    google_pay: bool | None = None
    cash_app: bool | None = None
    afterpay_clearpay: bool | None = None

    model_config = _FROZEN


class CustomField(BaseModel):
    """Extra question shown to the buyer at checkout."""

    title: str = Field(min_length=1, max_length=50)

    model_config = _FROZEN


class ShippingFee(BaseModel):
    """Flat shipping charge added to the order."""

    name: str
    charge: MoneyAmount

    model_config = _FROZEN


class CheckoutOptions(BaseModel):
    """Hosted checkout page settings."""

    ask_for_shipping_address: bool | None = None
    accepted_payment_methods: AcceptedPaymentMethods | None = None
    allow_tipping: bool | None = None
    custom_fields: list[CustomField] | None = None
    redirect_url: str | None = None
    merchant_support_email: str | None = None
    app_fee_money: MoneyAmount | None = None
    shipping_fee: ShippingFee | None = None

    model_config = _FROZEN


class Address(BaseModel):
    """Buyer address in Square's field naming."""

    address_line_1: str | None = None
    address_line_2: str | None = None
    locality: str | None = None
    administrative_district_level_1: str | None = None
    postal_code: str | None = None
    country: str | None = Field(default=None, min_length=2, max_length=2)

    model_config = _FROZEN


class PrePopulatedData(BaseModel):
    """Buyer details filled in on the checkout page."""

    buyer_email: str | None = None
    buyer_phone_number: str | None = None
    buyer_address: Address | None = None

    model_config = _FROZEN


class GiftCardLinkOptions(BaseModel):
    """Purchase intent for a gift card checkout link."""

    name: str = Field(default="Gift Card", min_length=1, max_length=255)
    amount: Decimal = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    description: str | None = Field(default=None, max_length=1000)
    recipient_email: str | None = None
    recipient_name: str | None = Field(default=None, max_length=255)
    sender_name: str | None = Field(default=None, max_length=255)
    custom_message: str | None = Field(default=None, max_length=500)
    payment_note: str | None = Field(default=None, max_length=1000)
    checkout_options: CheckoutOptions | None = None
    pre_populated_data: PrePopulatedData | None = None

    model_config = _FROZEN


class QuickPayOptions(BaseModel):
    """Purchase intent for a single-price link without gift card metadata."""

    name: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    description: str | None = Field(default=None, max_length=1000)
    payment_note: str | None = Field(default=None, max_length=1000)
    checkout_options: CheckoutOptions | None = None
    pre_populated_data: PrePopulatedData | None = None

    model_config = _FROZEN


class PaymentLinkUpdate(BaseModel):
    """Partial update of an existing link. Unset fields are left untouched."""

    checkout_options: CheckoutOptions | None = None
    pre_populated_data: PrePopulatedData | None = None
    payment_note: str | None = Field(default=None, max_length=1000)

    model_config = _FROZEN

    @property
    def is_empty(self) -> bool:
        """True when no field was supplied."""
        return (
            self.checkout_options is None
            and self.pre_populated_data is None
            and not self.payment_note
        )


# =============================================================================
# Responses
# =============================================================================


class PaymentLink(BaseModel):
    """Square PaymentLink resource."""

    id: str
    url: str
    version: int = 1
    order_id: str = ""
    description: str | None = None
    long_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    checkout_options: dict[str, Any] | None = None
    pre_populated_data: dict[str, Any] | None = None
    payment_note: str | None = None
    related_resources: dict[str, Any] | None = None

    model_config = {"extra": "ignore"}

    @classmethod
    def from_api_response(cls, data: dict) -> PaymentLink:
        """Parse from a create/retrieve/update response body."""
        link = dict(data["payment_link"])
        if data.get("related_resources"):
            link["related_resources"] = data["related_resources"]
        return cls.model_validate(link)


class PaymentLinkListResponse(BaseModel):
    """One page of payment links."""

    payment_links: list[PaymentLink] = Field(default_factory=list)
    cursor: str | None = None

    @property
    def has_more(self) -> bool:
        """Check if another page is available."""
        return bool(self.cursor)

    @classmethod
    def from_api_response(cls, data: dict) -> PaymentLinkListResponse:
        """Parse from raw API response."""
        return cls(
            payment_links=[PaymentLink.model_validate(p) for p in data.get("payment_links", [])],
            cursor=data.get("cursor") or None,
        )


class DeletePaymentLinkResponse(BaseModel):
    """Result of deleting a link; Square cancels the link's order."""

    id: str
    cancelled_order_id: str | None = None

    model_config = {"extra": "ignore"}

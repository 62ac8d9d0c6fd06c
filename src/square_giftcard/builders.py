"""Request-body builders for Square's Payment Links API.

Every builder returns a plain dict in Square's snake_case JSON shape.
Money is converted from decimal units to cents here and nowhere else.
"""

from typing import Any

from square_giftcard.models.payment_links import (
    AcceptedPaymentMethods,
    CheckoutOptions,
    GiftCardLinkOptions,
    PaymentLinkUpdate,
    PrePopulatedData,
    QuickPayOptions,
)
from square_giftcard.money import money

__all__ = [
    "build_checkout_options",
    "build_gift_card_note",
    "build_gift_card_request",
    "build_pre_populated_data",
    "build_quick_pay_request",
    "build_update_request",
]

NOTE_SEPARATOR = " | "


def build_gift_card_note(
    recipient_name: str | None = None,
    sender_name: str | None = None,
    custom_message: str | None = None,
) -> str:
    """Compose the line item note, skipping empty parts.

    Example:
        >>> build_gift_card_note("Jane", "John", "")
        'For: Jane | From: John'
    """
    parts = []
    if recipient_name:
        parts.append(f"For: {recipient_name}")
    if sender_name:
        parts.append(f"From: {sender_name}")
    if custom_message:
        parts.append(f"Message: {custom_message}")
    return NOTE_SEPARATOR.join(parts)


def build_checkout_options(
    options: CheckoutOptions | None,
    *,
    with_defaults: bool = False,
) -> dict[str, Any]:
    """Translate checkout options to Square's ``checkout_options`` object.

    Args:
        options: Caller's options (may be None)
        with_defaults: Always emit accepted payment methods, shipping-address
            prompt and tipping, filling unset values with defaults. Used for
            gift card links. When False only supplied fields are emitted.
    """
    body: dict[str, Any] = {}

    methods = options.accepted_payment_methods if options is not None else None
    if methods is not None or with_defaults:
        if methods is None:
            methods = AcceptedPaymentMethods()
        body["accepted_payment_methods"] = {
            "apple_pay": _default(methods.apple_pay, True),
            "google_pay": _default(methods.google_pay, True),
            "cash_app_pay": _default(methods.cash_app, True),
            "afterpay_clearpay": _default(methods.afterpay_clearpay, False),
        }

    ask_for_shipping = options.ask_for_shipping_address if options is not None else None
    if ask_for_shipping is not None or with_defaults:
        body["ask_for_shipping_address"] = _default(ask_for_shipping, False)

    allow_tipping = options.allow_tipping if options is not None else None
    if allow_tipping is not None or with_defaults:
        body["allow_tipping"] = _default(allow_tipping, False)

    if options is None:
        return body

    if options.custom_fields:
        body["custom_fields"] = [{"title": f.title} for f in options.custom_fields]

    if options.redirect_url:
        body["redirect_url"] = options.redirect_url

    if options.merchant_support_email:
        body["merchant_support_email"] = options.merchant_support_email

    if options.app_fee_money is not None:
        body["app_fee_money"] = money(
            options.app_fee_money.amount,
            options.app_fee_money.currency,
            field="checkout_options.app_fee_money",
        )

    if options.shipping_fee is not None:
        body["shipping_fee"] = {
            "name": options.shipping_fee.name,
            "charge": money(
                options.shipping_fee.charge.amount,
                options.shipping_fee.charge.currency,
                field="checkout_options.shipping_fee.charge",
            ),
        }

    return body


def _default(value: bool | None, default: bool) -> bool:
    return default if value is None else value


def build_pre_populated_data(data: PrePopulatedData) -> dict[str, Any]:
    """Translate buyer details, dropping empty fields."""
    return data.model_dump(exclude_none=True)


def build_gift_card_request(
    options: GiftCardLinkOptions,
    *,
    location_id: str,
    idempotency_key: str,
) -> dict[str, Any]:
    """Build a CreatePaymentLink body for a gift card purchase.

    The order carries one line item priced in cents, with the gift card
    details in its note and in order metadata.
    """
    line_item = {
        "name": options.name,
        "quantity": "1",
        "base_price_money": money(options.amount, options.currency),
        "note": build_gift_card_note(
            options.recipient_name,
            options.sender_name,
            options.custom_message,
        ),
    }

    body: dict[str, Any] = {
        "idempotency_key": idempotency_key,
        "order": {
            "location_id": location_id,
            "line_items": [line_item],
            "metadata": {
                "gift_card_purchase": "true",
                "recipient_email": options.recipient_email or "",
                "recipient_name": options.recipient_name or "",
                "sender_name": options.sender_name or "",
            },
        },
        "checkout_options": build_checkout_options(options.checkout_options, with_defaults=True),
    }

    if options.description:
        body["description"] = options.description

    if options.payment_note:
        body["payment_note"] = options.payment_note

    if options.pre_populated_data is not None:
        body["pre_populated_data"] = build_pre_populated_data(options.pre_populated_data)

    return body


def build_quick_pay_request(
    options: QuickPayOptions,
    *,
    location_id: str,
    idempotency_key: str,
) -> dict[str, Any]:
    """Build a CreatePaymentLink body using Square's quick pay shape."""
    body: dict[str, Any] = {
        "idempotency_key": idempotency_key,
        "quick_pay": {
            "name": options.name,
            "price_money": money(options.amount, options.currency),
            "location_id": location_id,
        },
    }

    if options.checkout_options is not None:
        body["checkout_options"] = build_checkout_options(options.checkout_options)

    if options.pre_populated_data is not None:
        body["pre_populated_data"] = build_pre_populated_data(options.pre_populated_data)

    if options.description:
        body["description"] = options.description

    if options.payment_note:
        body["payment_note"] = options.payment_note

    return body


def build_update_request(updates: PaymentLinkUpdate, *, version: int) -> dict[str, Any]:
    """Build an UpdatePaymentLink body containing only the supplied fields.

    Unset fields are omitted entirely so Square leaves them unchanged.
    """
    payment_link: dict[str, Any] = {"version": version}

    if updates.checkout_options is not None:
        payment_link["checkout_options"] = build_checkout_options(updates.checkout_options)

    if updates.pre_populated_data is not None:
        payment_link["pre_populated_data"] = build_pre_populated_data(
            updates.pre_populated_data
        )

    if updates.payment_note:
        payment_link["payment_note"] = updates.payment_note

    return {"payment_link": payment_link}

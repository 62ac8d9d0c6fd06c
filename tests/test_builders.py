"""Tests for payment link request builders."""

from decimal import Decimal

import pytest

from square_giftcard.builders import (
    build_checkout_options,
    build_gift_card_note,
    build_gift_card_request,
    build_quick_pay_request,
    build_update_request,
)
from square_giftcard.exceptions import SquareValidationError
from square_giftcard.models.payment_links import (
    AcceptedPaymentMethods,
    Address,
    CheckoutOptions,
    CustomField,
    GiftCardLinkOptions,
    MoneyAmount,
    PaymentLinkUpdate,
    PrePopulatedData,
    QuickPayOptions,
    ShippingFee,
)


class TestGiftCardNote:
    """Tests for line item note composition."""

    def test_skips_empty_message(self) -> None:
        assert build_gift_card_note("Jane", "John", "") == "For: Jane | From: John"

    def test_all_parts(self) -> None:
        note = build_gift_card_note("Jane", "John", "Happy birthday!")
        assert note == "For: Jane | From: John | Message: Happy birthday!"

    def test_only_message(self) -> None:
        assert build_gift_card_note(None, None, "Enjoy") == "Message: Enjoy"

    def test_nothing(self) -> None:
        assert build_gift_card_note() == ""


class TestCheckoutOptions:
    """Tests for checkout_options translation."""

    def test_defaults_when_requested(self) -> None:
        """Gift card links always carry payment methods, shipping and tipping."""
        assert build_checkout_options(None, with_defaults=True) == {
            "accepted_payment_methods": {
                "apple_pay": True,
                "google_pay": True,
                "cash_app_pay": True,
                "afterpay_clearpay": False,
            },
            "ask_for_shipping_address": False,
            "allow_tipping": False,
        }

    def test_no_defaults_emits_only_supplied_fields(self) -> None:
        options = CheckoutOptions(redirect_url="https://shop.example.com/thanks")
        assert build_checkout_options(options) == {
            "redirect_url": "https://shop.example.com/thanks",
        }

    def test_partial_payment_methods_fill_defaults(self) -> None:
        options = CheckoutOptions(
            accepted_payment_methods=AcceptedPaymentMethods(apple_pay=False, afterpay_clearpay=True)
        )
        assert build_checkout_options(options)["accepted_payment_methods"] == {
            "apple_pay": False,
            "google_pay": True,
            "cash_app_pay": True,
            "afterpay_clearpay": True,
        }

    def test_explicit_false_is_kept(self) -> None:
        options = CheckoutOptions(allow_tipping=False, ask_for_shipping_address=True)
        body = build_checkout_options(options)
        assert body == {"ask_for_shipping_address": True, "allow_tipping": False}

    def test_fees_converted_to_cents(self) -> None:
        options = CheckoutOptions(
            app_fee_money=MoneyAmount(amount=Decimal("1.25")),
            shipping_fee=ShippingFee(
                name="Card mailing", charge=MoneyAmount(amount=Decimal("4.99"), currency="usd")
            ),
            custom_fields=[CustomField(title="Gift wrap?")],
            merchant_support_email="help@shop.example.com",
        )

        body = build_checkout_options(options)

        assert body["app_fee_money"] == {"amount": 125, "currency": "USD"}
        assert body["shipping_fee"] == {
            "name": "Card mailing",
            "charge": {"amount": 499, "currency": "USD"},
        }
        assert body["custom_fields"] == [{"title": "Gift wrap?"}]
        assert body["merchant_support_email"] == "help@shop.example.com"


class TestGiftCardRequest:
    """Tests for the gift card CreatePaymentLink body."""

    def test_shape(self) -> None:
        options = GiftCardLinkOptions(
            amount=Decimal("49.99"),
            recipient_email="jane@example.com",
            recipient_name="Jane",
            sender_name="John",
            description="Birthday card",
        )

        body = build_gift_card_request(options, location_id="LOC123", idempotency_key="key-1")

        assert body["idempotency_key"] == "key-1"
        assert body["description"] == "Birthday card"
        order = body["order"]
        assert order["location_id"] == "LOC123"
        assert order["line_items"] == [
            {
                "name": "Gift Card",
                "quantity": "1",
                "base_price_money": {"amount": 4999, "currency": "USD"},
                "note": "For: Jane | From: John",
            }
        ]
        assert order["metadata"] == {
            "gift_card_purchase": "true",
            "recipient_email": "jane@example.com",
            "recipient_name": "Jane",
            "sender_name": "John",
        }
        assert body["checkout_options"]["accepted_payment_methods"]["cash_app_pay"] is True
        assert "payment_note" not in body
        assert "pre_populated_data" not in body

    def test_pre_populated_data_drops_empty_fields(self) -> None:
        options = GiftCardLinkOptions(
            amount=25,
            pre_populated_data=PrePopulatedData(
                buyer_email="buyer@example.com",
                buyer_address=Address(locality="Austin", country="US"),
            ),
        )

        body = build_gift_card_request(options, location_id="LOC123", idempotency_key="k")

        assert body["pre_populated_data"] == {
            "buyer_email": "buyer@example.com",
            "buyer_address": {"locality": "Austin", "country": "US"},
        }


class TestQuickPayRequest:
    """Tests for the quick pay CreatePaymentLink body."""

    def test_shape(self) -> None:
        options = QuickPayOptions(name="Coffee beans", amount=Decimal("18.50"), currency="cad")

        body = build_quick_pay_request(options, location_id="LOC123", idempotency_key="k")

        assert body == {
            "idempotency_key": "k",
            "quick_pay": {
                "name": "Coffee beans",
                "price_money": {"amount": 1850, "currency": "CAD"},
                "location_id": "LOC123",
            },
        }


class TestUpdateRequest:
    """Tests for the UpdatePaymentLink body."""

    def test_only_supplied_fields(self) -> None:
        body = build_update_request(PaymentLinkUpdate(payment_note="Thanks!"), version=3)
        assert body == {"payment_link": {"version": 3, "payment_note": "Thanks!"}}

    def test_checkout_options_without_defaults(self) -> None:
        updates = PaymentLinkUpdate(checkout_options=CheckoutOptions(allow_tipping=True))
        body = build_update_request(updates, version=1)
        assert body == {"payment_link": {"version": 1, "checkout_options": {"allow_tipping": True}}}

class TestSubCentAmounts:
    """Amounts that pass model validation but round to zero cents."""

    def test_gift_card_amount_rejected(self) -> None:
        options = GiftCardLinkOptions(amount=Decimal("0.004"))

        with pytest.raises(SquareValidationError) as exc_info:
            build_gift_card_request(options, location_id="LOC123", idempotency_key="k")

        assert exc_info.value.field == "amount"

    def test_quick_pay_price_rejected(self) -> None:
        options = QuickPayOptions(name="Sticker", amount="0.001")

        with pytest.raises(SquareValidationError):
            build_quick_pay_request(options, location_id="LOC123", idempotency_key="k")

"""Tests for the Payment Links adapter against a fake Square."""

import uuid
from decimal import Decimal

import httpx
import pytest

from square_giftcard.api.payment_links import PaymentLinksAPI
from square_giftcard.config import SquareConfig
from square_giftcard.exceptions import (
    SquareAPIError,
    SquareConfigError,
    SquareRateLimitError,
    SquareValidationError,
)
from square_giftcard.models.payment_links import (
    CheckoutOptions,
    GiftCardLinkOptions,
    PaymentLinkUpdate,
    PrePopulatedData,
    QuickPayOptions,
)

from tests.fakes import FakeSquare


@pytest.fixture
def api(config: SquareConfig, http_client: httpx.AsyncClient) -> PaymentLinksAPI:
    return PaymentLinksAPI(config, http_client)


@pytest.fixture
def gift_card() -> GiftCardLinkOptions:
    return GiftCardLinkOptions(
        amount=Decimal("49.99"),
        recipient_email="jane@example.com",
        recipient_name="Jane",
        sender_name="John",
    )


class TestConstruction:
    """Tests for adapter construction."""

    def test_missing_config_raises(self) -> None:
        with pytest.raises(SquareConfigError) as exc_info:
            PaymentLinksAPI(None)

        assert exc_info.value.missing == ["SQUARE_ACCESS_TOKEN", "SQUARE_LOCATION_ID"]

    def test_from_env_missing_credentials(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SQUARE_ACCESS_TOKEN", raising=False)
        monkeypatch.setenv("SQUARE_LOCATION_ID", "LOC123")

        with pytest.raises(SquareConfigError) as exc_info:
            PaymentLinksAPI.from_env()

        assert exc_info.value.missing == ["SQUARE_ACCESS_TOKEN"]

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SQUARE_ACCESS_TOKEN", "EAAA-env")
        monkeypatch.setenv("SQUARE_LOCATION_ID", "LOC-ENV")

        api = PaymentLinksAPI.from_env()

        assert api.location_id == "LOC-ENV"


class TestCreateGiftCardLink:
    """Tests for gift card link creation."""

    async def test_creates_link(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        link = await api.create_gift_card_payment_link(gift_card)

        assert link.id == "LINK1"
        assert link.url == "https://square.link/u/LINK1"
        assert link.order_id == "ORDER1"
        assert link.version == 1
        assert link.related_resources is not None
        assert link.related_resources["orders"][0]["total_money"] == {
            "amount": 4999,
            "currency": "USD",
        }

        request = fake_square.requests[-1]
        assert request.method == "POST"
        assert request.url.path == "/v2/online-checkout/payment-links"
        assert request.headers["Authorization"] == "Bearer EAAA-test-token"
        assert request.headers["Square-Version"] == "2024-12-18"

        body = fake_square.last_body()
        assert body["order"]["location_id"] == "LOC123"
        assert body["order"]["line_items"][0]["base_price_money"]["amount"] == 4999

    async def test_fresh_idempotency_key_per_call(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        """Two calls without a key create two links."""
        first = await api.create_gift_card_payment_link(gift_card)
        second = await api.create_gift_card_payment_link(gift_card)

        keys = [fake_square.body_of(r)["idempotency_key"] for r in fake_square.requests]
        assert keys[0] != keys[1]
        uuid.UUID(keys[0])
        assert first.id != second.id

    async def test_reused_idempotency_key(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        """Retrying with the same key does not create a duplicate."""
        first = await api.create_gift_card_payment_link(gift_card, idempotency_key="retry-1")
        second = await api.create_gift_card_payment_link(gift_card, idempotency_key="retry-1")

        assert first.id == second.id
        assert len(fake_square.links) == 1


class TestCreateQuickPayLink:
    """Tests for quick pay link creation."""

    async def test_creates_link(self, api: PaymentLinksAPI, fake_square: FakeSquare) -> None:
        options = QuickPayOptions(
            name="Store credit",
            amount=Decimal("20"),
            checkout_options=CheckoutOptions(allow_tipping=True),
        )

        link = await api.create_quick_pay_link(options)

        assert link.id == "LINK1"
        body = fake_square.last_body()
        assert body["quick_pay"] == {
            "name": "Store credit",
            "price_money": {"amount": 2000, "currency": "USD"},
            "location_id": "LOC123",
        }
        assert body["checkout_options"] == {"allow_tipping": True}


class TestGetAndDelete:
    """Tests for retrieving and deleting links."""

    async def test_get(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        created = await api.create_gift_card_payment_link(gift_card)

        fetched = await api.get_payment_link(created.id)

        assert fetched.id == created.id
        assert fetched.url == created.url

    async def test_get_unknown_raises(self, api: PaymentLinksAPI) -> None:
        with pytest.raises(SquareAPIError) as exc_info:
            await api.get_payment_link("NOPE")

        error = exc_info.value
        assert error.status_code == 404
        assert error.codes == ["NOT_FOUND"]
        assert error.message == "Square API Error: Payment link NOPE not found"

    async def test_delete(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        created = await api.create_gift_card_payment_link(gift_card)

        response = await api.delete_payment_link(created.id)

        assert response.id == created.id
        assert response.cancelled_order_id == created.order_id
        assert created.id not in fake_square.links


class TestLinkIdInPath:
    """Link IDs always address a single resource under payment-links."""

    async def test_slashes_are_encoded(self, api: PaymentLinksAPI, fake_square: FakeSquare) -> None:
        with pytest.raises(SquareAPIError):
            await api.get_payment_link("../../locations")

        raw_path = fake_square.requests[-1].url.raw_path
        assert raw_path == b"/v2/online-checkout/payment-links/..%2F..%2Flocations"

    async def test_query_characters_are_encoded(
        self, api: PaymentLinksAPI, fake_square: FakeSquare
    ) -> None:
        with pytest.raises(SquareAPIError):
            await api.delete_payment_link("LINK1?cursor=0")

        request = fake_square.requests[-1]
        assert request.url.query == b""
        assert request.url.raw_path.endswith(b"/LINK1%3Fcursor%3D0")

    @pytest.mark.parametrize("link_id", ["", "   "])
    async def test_blank_id_rejected_before_request(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, link_id: str
    ) -> None:
        with pytest.raises(SquareValidationError) as exc_info:
            await api.get_payment_link(link_id)

        assert exc_info.value.field == "payment_link_id"
        assert fake_square.requests == []

    async def test_update_with_blank_id_sends_nothing(
        self, api: PaymentLinksAPI, fake_square: FakeSquare
    ) -> None:
        with pytest.raises(SquareValidationError):
            await api.update_payment_link("", PaymentLinkUpdate(payment_note="x"), version=1)

        assert fake_square.requests == []


class TestUpdatePaymentLink:
    """Tests for partial updates."""

    async def test_sequential_partial_updates_persist(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        """A second partial update does not undo the first."""
        created = await api.create_gift_card_payment_link(gift_card)

        await api.update_payment_link(created.id, PaymentLinkUpdate(payment_note="Thank you"))
        updated = await api.update_payment_link(
            created.id,
            PaymentLinkUpdate(
                pre_populated_data=PrePopulatedData(buyer_email="buyer@example.com")
            ),
        )

        assert updated.version == 3
        assert updated.payment_note == "Thank you"
        assert updated.pre_populated_data == {"buyer_email": "buyer@example.com"}

        fetched = await api.get_payment_link(created.id)
        assert fetched.payment_note == "Thank you"
        assert fetched.pre_populated_data == {"buyer_email": "buyer@example.com"}

    async def test_only_supplied_fields_sent(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        created = await api.create_gift_card_payment_link(gift_card)

        await api.update_payment_link(
            created.id, PaymentLinkUpdate(payment_note="Hi"), version=created.version
        )

        assert fake_square.last_body() == {"payment_link": {"version": 1, "payment_note": "Hi"}}

    async def test_fetches_version_when_omitted(
        self, api: PaymentLinksAPI, fake_square: FakeSquare, gift_card: GiftCardLinkOptions
    ) -> None:
        created = await api.create_gift_card_payment_link(gift_card)
        fake_square.requests.clear()

        await api.update_payment_link(created.id, PaymentLinkUpdate(payment_note="Hi"))

        assert [r.method for r in fake_square.requests] == ["GET", "PUT"]

    async def test_stale_version_raises(
        self, api: PaymentLinksAPI, gift_card: GiftCardLinkOptions
    ) -> None:
        created = await api.create_gift_card_payment_link(gift_card)

        with pytest.raises(SquareAPIError) as exc_info:
            await api.update_payment_link(
                created.id, PaymentLinkUpdate(payment_note="Hi"), version=7
            )

        assert exc_info.value.error_code == "VERSION_MISMATCH"
        assert exc_info.value.errors[0].field == "payment_link.version"


class TestErrors:
    """Tests for error translation."""

    async def test_rate_limit(self, config: SquareConfig) -> None:
        def limited(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                429,
                headers={"Retry-After": "3"},
                json={"errors": [{"category": "RATE_LIMIT_ERROR", "code": "RATE_LIMITED"}]},
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(limited)) as client:
            api = PaymentLinksAPI(config, client)
            with pytest.raises(SquareRateLimitError) as exc_info:
                await api.get_payment_link("LINK1")

        assert exc_info.value.retry_after == 3
        assert exc_info.value.status_code == 429

    async def test_missing_payment_link_in_body(self, config: SquareConfig) -> None:
        def empty(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        async with httpx.AsyncClient(transport=httpx.MockTransport(empty)) as client:
            api = PaymentLinksAPI(config, client)
            with pytest.raises(SquareAPIError) as exc_info:
                await api.create_quick_pay_link(QuickPayOptions(name="x", amount=1))

        assert exc_info.value.message == "Failed to create quick pay link"

    async def test_transport_errors_propagate(self, config: SquareConfig) -> None:
        def boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(boom)) as client:
            api = PaymentLinksAPI(config, client)
            with pytest.raises(httpx.ReadTimeout):
                await api.get_payment_link("LINK1")

    async def test_no_automatic_retry(self, config: SquareConfig) -> None:
        calls = 0

        def limited(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(429)

        async with httpx.AsyncClient(transport=httpx.MockTransport(limited)) as client:
            api = PaymentLinksAPI(config, client)
            with pytest.raises(SquareRateLimitError):
                await api.get_payment_link("LINK1")

        assert calls == 1

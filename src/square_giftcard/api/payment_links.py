"""Payment Links (Checkout) API endpoints."""

from __future__ import annotations

import logging
import uuid
from urllib.parse import quote
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from square_giftcard.api.base import BaseAPI
from square_giftcard.builders import (
    build_gift_card_request,
    build_quick_pay_request,
    build_update_request,
)
from square_giftcard.config import SquareConfig
from square_giftcard.exceptions import SquareAPIError, SquareConfigError, SquareValidationError
from square_giftcard.models.payment_links import (
    DeletePaymentLinkResponse,
    GiftCardLinkOptions,
    PaymentLink,
    PaymentLinkListResponse,
    PaymentLinkUpdate,
    QuickPayOptions,
)

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

PAYMENT_LINKS_PATH = "/v2/online-checkout/payment-links"


def new_idempotency_key() -> str:
    """Generate a fresh idempotency key for one logical create attempt."""
    return str(uuid.uuid4())


def _link_path(payment_link_id: str) -> str:
    """Path for one link, with the ID encoded as a single path segment."""
    if not payment_link_id or not payment_link_id.strip():
        msg = "Payment link ID is required"
        raise SquareValidationError(msg, field="payment_link_id")
    return f"{PAYMENT_LINKS_PATH}/{quote(payment_link_id, safe='')}"


class PaymentLinksAPI(BaseAPI):
    """Square Checkout API for hosted payment links.

    Every method raises on failure: ``SquareAPIError`` (or
    ``SquareRateLimitError``) for responses Square rejected, and the
    original ``httpx`` exception for transport failures.
    """

    config: SquareConfig

    def __init__(
        self,
        config: SquareConfig | None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if config is None:
            msg = "Square configuration is missing: SQUARE_ACCESS_TOKEN, SQUARE_LOCATION_ID"
            raise SquareConfigError(
                msg, missing=["SQUARE_ACCESS_TOKEN", "SQUARE_LOCATION_ID"]
            )
        super().__init__(config, http_client)
        logger.info(
            "Square payment links initialized for %s, location %s",
            config.environment,
            config.location_id,
        )

    @classmethod
    def from_env(cls, http_client: httpx.AsyncClient | None = None) -> PaymentLinksAPI:
        """Create from SQUARE_ACCESS_TOKEN / SQUARE_LOCATION_ID.

        Raises:
            SquareConfigError: If either variable is unset
        """
        return cls(SquareConfig.from_env(), http_client)

    @property
    def location_id(self) -> str:
        return self.config.location_id

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.config.access_token}"}

    async def create_gift_card_payment_link(
        self,
        options: GiftCardLinkOptions,
        *,
        idempotency_key: str | None = None,
    ) -> PaymentLink:
        """Create a checkout link that sells one gift card.

        Args:
            options: Gift card purchase details, amounts in currency units
            idempotency_key: Reuse the key of an earlier attempt to retry the
                same purchase without creating a duplicate link or order.
                A new key is generated when omitted.

        Returns:
            The created PaymentLink, including related order resources
        """
        body = build_gift_card_request(
            options,
            location_id=self.location_id,
            idempotency_key=idempotency_key or new_idempotency_key(),
        )
        data = await self._post(PAYMENT_LINKS_PATH, body)
        return self._parse_link(data, "Failed to create payment link")

    async def create_quick_pay_link(
        self,
        options: QuickPayOptions,
        *,
        idempotency_key: str | None = None,
    ) -> PaymentLink:
        """Create a single-price checkout link without an explicit order.

        Args:
            options: Item name, price and optional checkout settings
            idempotency_key: See ``create_gift_card_payment_link``

        Returns:
            The created PaymentLink
        """
        body = build_quick_pay_request(
            options,
            location_id=self.location_id,
            idempotency_key=idempotency_key or new_idempotency_key(),
        )
        data = await self._post(PAYMENT_LINKS_PATH, body)
        return self._parse_link(data, "Failed to create quick pay link")

    async def get_payment_link(self, payment_link_id: str) -> PaymentLink:
        """Retrieve a payment link by ID."""
        data = await self._get(_link_path(payment_link_id))
        return self._parse_link(data, "Payment link not found")

    async def update_payment_link(
        self,
        payment_link_id: str,
        updates: PaymentLinkUpdate,
        *,
        version: int | None = None,
    ) -> PaymentLink:
        """Update some fields of a payment link.

        Only fields set on ``updates`` are sent; everything else on the link
        stays as it is.

        Args:
            payment_link_id: The link to update
            updates: Fields to change
            version: Current link version. Square rejects stale versions;
                when omitted the link is fetched first to read it.

        Returns:
            The updated PaymentLink
        """
        if version is None:
            current = await self.get_payment_link(payment_link_id)
            version = current.version

        body = build_update_request(updates, version=version)
        data = await self._put(_link_path(payment_link_id), body)
        return self._parse_link(data, "Failed to update payment link")

    async def delete_payment_link(self, payment_link_id: str) -> DeletePaymentLinkResponse:
        """Delete a payment link. Square also cancels the link's order."""
        data = await self._delete(_link_path(payment_link_id))
        return DeletePaymentLinkResponse.model_validate({"id": payment_link_id, **data})

    async def list_payment_links(
        self,
        *,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> PaymentLinkListResponse:
        """List payment links for the seller.

        Args:
            cursor: Pagination cursor from a previous response
            limit: Page size hint (Square caps it)

        Returns:
            PaymentLinkListResponse with links and the next cursor
        """
        params: dict[str, Any] = {}
        if cursor:
            params["cursor"] = cursor
        if limit:
            params["limit"] = limit

        data = await self._get(PAYMENT_LINKS_PATH, params=params or None)
        return PaymentLinkListResponse.from_api_response(data)

    async def _iter_payment_link_pages(
        self,
        *,
        page_size: int | None = None,
    ) -> AsyncIterator[PaymentLinkListResponse]:
        """Internal: iterate over payment link pages.

        Yields pages lazily - next API call only happens when consumer iterates.
        """
        cursor = None
        while True:
            page = await self.list_payment_links(cursor=cursor, limit=page_size)
            yield page

            if not page.has_more:
                break
            cursor = page.cursor

    async def iter_payment_links(
        self,
        *,
        page_size: int | None = None,
        limit: int | None = None,
    ) -> AsyncIterator[PaymentLink]:
        """Iterate over all payment links, fetching pages on demand.

        Args:
            page_size: Page size for API calls
            limit: Maximum links to yield (None = unlimited)

        Yields:
            Individual PaymentLink objects
        """
        if limit is not None and limit <= 0:
            return

        yielded = 0
        async for page in self._iter_payment_link_pages(page_size=page_size):
            for link in page.payment_links:
                yield link
                yielded += 1
                # Stop before the next page is requested
                if limit is not None and yielded >= limit:
                    return

    def _parse_link(self, data: dict[str, Any], failure_message: str) -> PaymentLink:
        if not data.get("payment_link"):
            raise SquareAPIError(failure_message, status_code=200, response_body=data)
        return PaymentLink.from_api_response(data)

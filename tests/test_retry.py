"""Tests for the call-site retry policy."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from square_giftcard.api.payment_links import PaymentLinksAPI
from square_giftcard.config import SquareConfig
from square_giftcard.exceptions import SquareAPIError, SquareRateLimitError
from square_giftcard.models.payment_links import QuickPayOptions
from square_giftcard.retry import _wait_for_rate_limit, with_backoff


@pytest.fixture(autouse=True)
def no_wait():
    """Skip real backoff delays."""
    with patch("square_giftcard.retry._wait_for_rate_limit", return_value=0):
        yield


def _state(exception: Exception, attempt_number: int = 1) -> MagicMock:
    retry_state = MagicMock()
    retry_state.outcome.exception.return_value = exception
    retry_state.attempt_number = attempt_number
    return retry_state


class TestWithBackoff:
    """Tests for with_backoff."""

    async def test_retries_rate_limit_and_succeeds(self) -> None:
        fn = AsyncMock(side_effect=[SquareRateLimitError("slow"), SquareRateLimitError("slow"), "ok"])

        result = await with_backoff(fn, "a", key="b")

        assert result == "ok"
        assert fn.await_count == 3
        fn.assert_awaited_with("a", key="b")

    async def test_retries_transport_errors(self) -> None:
        fn = AsyncMock(side_effect=[httpx.ConnectError("refused"), "ok"])

        assert await with_backoff(fn) == "ok"
        assert fn.await_count == 2

    async def test_raises_after_max_attempts(self) -> None:
        fn = AsyncMock(side_effect=SquareRateLimitError("slow"))

        with pytest.raises(SquareRateLimitError):
            await with_backoff(fn, attempts=3)

        assert fn.await_count == 3

    async def test_does_not_retry_other_errors(self) -> None:
        fn = AsyncMock(side_effect=SquareAPIError("bad", status_code=400))

        with pytest.raises(SquareAPIError):
            await with_backoff(fn)

        assert fn.await_count == 1

    async def test_single_attempt(self) -> None:
        fn = AsyncMock(side_effect=SquareRateLimitError("slow"))

        with pytest.raises(SquareRateLimitError):
            await with_backoff(fn, attempts=1)

        assert fn.await_count == 1

    async def test_create_retry_reuses_idempotency_key(self, config: SquareConfig) -> None:
        """A retried create sends the same idempotency key every time."""
        keys: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            keys.append(json.loads(request.content)["idempotency_key"])
            if len(keys) < 3:
                return httpx.Response(429)
            return httpx.Response(
                200, json={"payment_link": {"id": "L1", "url": "https://square.link/u/L1"}}
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            api = PaymentLinksAPI(config, client)
            link = await with_backoff(
                api.create_quick_pay_link,
                QuickPayOptions(name="Credit", amount=10),
                idempotency_key="pinned",
            )

        assert link.id == "L1"
        assert keys == ["pinned", "pinned", "pinned"]


class TestWaitStrategy:
    """Tests for the Retry-After aware wait strategy."""

    def test_uses_retry_after(self) -> None:
        wait = _wait_for_rate_limit(_state(SquareRateLimitError("slow", retry_after=7)))
        assert wait == 7.0

    def test_exponential_without_retry_after(self) -> None:
        assert _wait_for_rate_limit(_state(SquareRateLimitError("slow"), 1)) == 2
        assert _wait_for_rate_limit(_state(SquareRateLimitError("slow"), 3)) == 4
        assert _wait_for_rate_limit(_state(SquareRateLimitError("slow"), 4)) == 8

    def test_capped_at_sixty_seconds(self) -> None:
        assert _wait_for_rate_limit(_state(httpx.ConnectError("x"), 10)) == 60

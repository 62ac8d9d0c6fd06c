"""Call-site retry policy for Square requests.

The adapters never retry on their own. Wrap a call here when the caller
decides a retry is safe, e.g. a create call pinned to one idempotency key:

    key = new_idempotency_key()
    link = await with_backoff(
        client.payment_links.create_gift_card_payment_link,
        options,
        idempotency_key=key,
    )
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from square_giftcard.exceptions import SquareRateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 5

RETRYABLE_EXCEPTIONS = (SquareRateLimitError, httpx.TransportError)


def _wait_for_rate_limit(retry_state: RetryCallState) -> float:
    """Custom wait strategy that respects Retry-After header.

    If the exception has a retry_after value, use it.
    Otherwise, fall back to exponential backoff.
    """
    exception = retry_state.outcome.exception() if retry_state.outcome else None

    if isinstance(exception, SquareRateLimitError) and exception.retry_after:
        wait_time = float(exception.retry_after)
        logger.info("Rate limited, waiting %s seconds (from Retry-After header)", wait_time)
        return wait_time

    # Exponential backoff: 2, 4, 8, 16... capped at 60 seconds
    exp_wait = wait_exponential(multiplier=1, min=2, max=60)
    wait_time = exp_wait(retry_state)
    logger.info(
        "Retrying after %s, waiting %.1f seconds (exponential backoff)",
        type(exception).__name__,
        wait_time,
    )
    return wait_time


def retrying(attempts: int = DEFAULT_ATTEMPTS) -> AsyncRetrying:
    """Build the retry controller used by ``with_backoff``.

    Retries rate limits and transport errors, then re-raises the last one.
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        wait=_wait_for_rate_limit,
        stop=stop_after_attempt(attempts),
        reraise=True,
    )


async def with_backoff(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    attempts: int = DEFAULT_ATTEMPTS,
    **kwargs: Any,
) -> T:
    """Await ``fn(*args, **kwargs)``, retrying transient failures."""
    async for attempt in retrying(attempts):
        with attempt:
            return await fn(*args, **kwargs)
    raise AssertionError("unreachable")  # pragma: no cover

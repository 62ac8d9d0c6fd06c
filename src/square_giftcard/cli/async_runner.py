"""Async command support for Typer."""

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

import httpx
import typer

from square_giftcard.exceptions import SquareAPIError, SquareError

T = TypeVar("T")

TOKEN_INVALID_CODES = frozenset({"ACCESS_TOKEN_EXPIRED", "ACCESS_TOKEN_REVOKED", "UNAUTHORIZED"})


def _is_token_invalid_error(e: SquareAPIError) -> bool:
    """Check if the error is due to an invalid token (expired or revoked)."""
    return e.status_code == 401 or bool(TOKEN_INVALID_CODES.intersection(e.codes))


def _report(e: SquareError, ctx: typer.Context | None) -> None:
    from square_giftcard.cli.formatters import print_error, print_info

    print_error(e.message)

    if isinstance(e, SquareAPIError):
        for detail in e.errors[1:]:
            print_info(f"{detail.code}: {detail.detail or ''}".rstrip(": "))
        if _is_token_invalid_error(e):
            merchant = ctx.obj.merchant_id if ctx is not None and ctx.obj else None
            if merchant:
                print_info(f"Run 'square-giftcard auth refresh {merchant}' to renew the token.")
            else:
                print_info("Check SQUARE_ACCESS_TOKEN or connect again with 'auth login'.")


def _find_context(args: tuple[Any, ...], kwargs: dict[str, Any]) -> typer.Context | None:
    for arg in args:
        if isinstance(arg, typer.Context):
            return arg
    # typer passes ctx as keyword arg
    return kwargs.get("ctx")


def async_command(f: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """Decorator to run async Typer commands.

    Client errors are printed and turned into exit code 1.

    Usage:
        @app.command()
        @async_command
        async def my_command(ctx: typer.Context):
            async with get_client(ctx.obj) as client:
                link = await client.payment_links.get_payment_link(link_id)
                ...
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        async def run_with_error_handling() -> T:
            try:
                return await f(*args, **kwargs)
            except SquareError as e:
                _report(e, _find_context(args, kwargs))
                raise typer.Exit(1) from None
            except httpx.HTTPError as e:
                from square_giftcard.cli.formatters import print_error

                print_error(f"Network error talking to Square: {e}")
                raise typer.Exit(1) from None

        return asyncio.run(run_with_error_handling())

    return wrapper

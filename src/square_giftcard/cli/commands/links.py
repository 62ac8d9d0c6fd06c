"""Payment link commands."""

from typing import Any, TypeVar

import typer
from pydantic import BaseModel, ValidationError

from square_giftcard.api.payment_links import new_idempotency_key
from square_giftcard.cli.async_runner import async_command
from square_giftcard.cli.client_factory import get_client, payment_links_api
from square_giftcard.cli.config import CLIConfig, OutputFormat
from square_giftcard.cli.formatters import (
    LINK_COLUMNS,
    format_output,
    link_row,
    print_error,
    print_info,
    print_success,
)
from square_giftcard.models.payment_links import (
    CheckoutOptions,
    GiftCardLinkOptions,
    PaymentLink,
    PaymentLinkUpdate,
    PrePopulatedData,
    QuickPayOptions,
)
from square_giftcard.retry import with_backoff

app = typer.Typer(no_args_is_help=True)

M = TypeVar("M", bound=BaseModel)


def _validated(model: type[M], **values: Any) -> M:
    """Build an options model, turning validation errors into exit code 1."""
    try:
        return model(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"])
            print_error(f"{location}: {err['msg']}")
        raise typer.Exit(1) from None


def _checkout_options(
    *,
    redirect_url: str | None,
    support_email: str | None,
    ask_for_shipping: bool | None,
    allow_tipping: bool | None,
) -> CheckoutOptions | None:
    values = {
        "redirect_url": redirect_url,
        "merchant_support_email": support_email,
        "ask_for_shipping_address": ask_for_shipping,
        "allow_tipping": allow_tipping,
    }
    if all(v is None for v in values.values()):
        return None
    return _validated(CheckoutOptions, **values)


def _pre_populated(buyer_email: str | None) -> PrePopulatedData | None:
    if buyer_email is None:
        return None
    return _validated(PrePopulatedData, buyer_email=buyer_email)


def _show_link(link: PaymentLink, output: OutputFormat, title: str) -> None:
    if output == OutputFormat.JSON:
        format_output(link, output)
    else:
        format_output(link_row(link), output, title=title)


@app.command("gift-card")
@async_command
async def create_gift_card(
    ctx: typer.Context,
    amount: str = typer.Option(..., "--amount", "-a", help="Gift card value, e.g. 49.99."),
    currency: str = typer.Option("USD", "--currency", help="ISO 4217 currency code."),
    name: str = typer.Option("Gift Card", "--name", help="Line item name."),
    recipient_email: str | None = typer.Option(None, "--recipient-email"),
    recipient_name: str | None = typer.Option(None, "--recipient-name"),
    sender_name: str | None = typer.Option(None, "--sender-name"),
    message: str | None = typer.Option(None, "--message", help="Personal message."),
    description: str | None = typer.Option(None, "--description"),
    payment_note: str | None = typer.Option(None, "--payment-note"),
    redirect_url: str | None = typer.Option(None, "--redirect-url"),
    support_email: str | None = typer.Option(None, "--support-email"),
    buyer_email: str | None = typer.Option(None, "--buyer-email"),
    idempotency_key: str | None = typer.Option(
        None,
        "--idempotency-key",
        help="Reuse the key of an earlier attempt to avoid a duplicate link.",
    ),
    retry: bool = typer.Option(
        True,
        "--retry/--no-retry",
        help="Retry rate limits and network errors with the same idempotency key.",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Create a checkout link that sells a gift card."""
    config: CLIConfig = ctx.obj

    options = _validated(
        GiftCardLinkOptions,
        name=name,
        amount=amount,
        currency=currency,
        description=description,
        recipient_email=recipient_email,
        recipient_name=recipient_name,
        sender_name=sender_name,
        custom_message=message,
        payment_note=payment_note,
        checkout_options=_checkout_options(
            redirect_url=redirect_url,
            support_email=support_email,
            ask_for_shipping=None,
            allow_tipping=None,
        ),
        pre_populated_data=_pre_populated(buyer_email),
    )
    key = idempotency_key or new_idempotency_key()

    async with get_client(config) as client:
        api = payment_links_api(client, config)
        link = await with_backoff(
            api.create_gift_card_payment_link,
            options,
            idempotency_key=key,
            attempts=5 if retry else 1,
        )

    print_success(f"Created gift card link {link.id}")
    _show_link(link, output, "Gift Card Link")
    print_info(f"Idempotency key: {key}")


@app.command("quick-pay")
@async_command
async def create_quick_pay(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Item name shown at checkout."),
    amount: str = typer.Option(..., "--amount", "-a", help="Price, e.g. 25.00."),
    currency: str = typer.Option("USD", "--currency", help="ISO 4217 currency code."),
    description: str | None = typer.Option(None, "--description"),
    payment_note: str | None = typer.Option(None, "--payment-note"),
    redirect_url: str | None = typer.Option(None, "--redirect-url"),
    support_email: str | None = typer.Option(None, "--support-email"),
    ask_for_shipping: bool | None = typer.Option(
        None, "--ask-shipping/--no-ask-shipping", help="Ask the buyer for a shipping address."
    ),
    allow_tipping: bool | None = typer.Option(None, "--allow-tipping/--no-allow-tipping"),
    buyer_email: str | None = typer.Option(None, "--buyer-email"),
    idempotency_key: str | None = typer.Option(None, "--idempotency-key"),
    retry: bool = typer.Option(True, "--retry/--no-retry"),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Create a single-price checkout link."""
    config: CLIConfig = ctx.obj

    options = _validated(
        QuickPayOptions,
        name=name,
        amount=amount,
        currency=currency,
        description=description,
        payment_note=payment_note,
        checkout_options=_checkout_options(
            redirect_url=redirect_url,
            support_email=support_email,
            ask_for_shipping=ask_for_shipping,
            allow_tipping=allow_tipping,
        ),
        pre_populated_data=_pre_populated(buyer_email),
    )
    key = idempotency_key or new_idempotency_key()

    async with get_client(config) as client:
        api = payment_links_api(client, config)
        link = await with_backoff(
            api.create_quick_pay_link,
            options,
            idempotency_key=key,
            attempts=5 if retry else 1,
        )

    print_success(f"Created quick pay link {link.id}")
    _show_link(link, output, "Quick Pay Link")


@app.command("get")
@async_command
async def get_link(
    ctx: typer.Context,
    link_id: str = typer.Argument(..., help="Payment link ID."),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Get payment link details."""
    config: CLIConfig = ctx.obj

    async with get_client(config) as client:
        api = payment_links_api(client, config)
        link = await with_backoff(api.get_payment_link, link_id)

    _show_link(link, output, f"Payment Link {link_id}")


@app.command("update")
@async_command
async def update_link(
    ctx: typer.Context,
    link_id: str = typer.Argument(..., help="Payment link ID."),
    payment_note: str | None = typer.Option(None, "--payment-note"),
    redirect_url: str | None = typer.Option(None, "--redirect-url"),
    support_email: str | None = typer.Option(None, "--support-email"),
    ask_for_shipping: bool | None = typer.Option(None, "--ask-shipping/--no-ask-shipping"),
    allow_tipping: bool | None = typer.Option(None, "--allow-tipping/--no-allow-tipping"),
    buyer_email: str | None = typer.Option(None, "--buyer-email"),
    version: int | None = typer.Option(
        None,
        "--version",
        help="Current link version (default: fetched before updating).",
    ),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Update some fields of a payment link; others stay unchanged."""
    config: CLIConfig = ctx.obj

    updates = _validated(
        PaymentLinkUpdate,
        payment_note=payment_note,
        checkout_options=_checkout_options(
            redirect_url=redirect_url,
            support_email=support_email,
            ask_for_shipping=ask_for_shipping,
            allow_tipping=allow_tipping,
        ),
        pre_populated_data=_pre_populated(buyer_email),
    )
    if updates.is_empty:
        print_error("Nothing to update. Pass at least one field option.")
        raise typer.Exit(1)

    async with get_client(config) as client:
        api = payment_links_api(client, config)
        link = await api.update_payment_link(link_id, updates, version=version)

    print_success(f"Updated payment link {link.id} (version {link.version})")
    _show_link(link, output, f"Payment Link {link_id}")


@app.command("delete")
@async_command
async def delete_link(
    ctx: typer.Context,
    link_id: str = typer.Argument(..., help="Payment link ID."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Delete a payment link.

    Note: Square also cancels the link's order. Use with caution.
    """
    config: CLIConfig = ctx.obj

    if not yes:
        typer.confirm(f"Delete payment link {link_id}?", abort=True)

    async with get_client(config) as client:
        api = payment_links_api(client, config)
        response = await api.delete_payment_link(link_id)

    print_success(f"Deleted payment link {response.id}.")
    if response.cancelled_order_id:
        print_info(f"Cancelled order {response.cancelled_order_id}")


@app.command("list")
@async_command
async def list_links(
    ctx: typer.Context,
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-n",
        help="Maximum links to return (default: all).",
    ),
    page_size: int | None = typer.Option(None, "--page-size", help="Links per API call."),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """List payment links."""
    config: CLIConfig = ctx.obj

    async with get_client(config) as client:
        api = payment_links_api(client, config)
        links = [link async for link in api.iter_payment_links(page_size=page_size, limit=limit)]

    if output == OutputFormat.JSON:
        format_output(links, output)
        return

    format_output([link_row(link) for link in links], output, title="Payment Links", columns=LINK_COLUMNS)

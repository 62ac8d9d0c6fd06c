"""Main Typer application."""

import logging
from pathlib import Path

import typer
from rich.logging import RichHandler

from square_giftcard.cli.config import CLIConfig, _default_config_dir
from square_giftcard.cli.formatters import error_console

# Create main app
app = typer.Typer(
    name="square-giftcard",
    help="Square gift card payment links command-line interface.",
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    """Route library logs through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )
    # Reduce verbosity of third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    sandbox: bool = typer.Option(
        True,
        "--sandbox/--production",
        "-s/-p",
        help="Use sandbox (default) or production environment.",
        envvar="SQUARE_SANDBOX",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    merchant: str | None = typer.Option(
        None,
        "--merchant",
        "-m",
        help="Act for a connected merchant (see 'auth connections').",
        envvar="SQUARE_MERCHANT_ID",
    ),
    config_dir: Path | None = typer.Option(
        None,
        "--config-dir",
        "-c",
        help="Config directory (default: ~/.config/square-giftcard).",
        envvar="SQUARE_GIFTCARD_CONFIG_DIR",
    ),
) -> None:
    """Square gift card payment links command-line interface.

    Use --production to connect to the live Square API.
    Default is sandbox mode for testing.
    """
    _configure_logging(verbose)
    ctx.obj = CLIConfig(
        sandbox=sandbox,
        verbose=verbose,
        merchant_id=merchant,
        config_dir=config_dir or _default_config_dir(),
    )

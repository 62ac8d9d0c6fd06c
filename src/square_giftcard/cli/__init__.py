"""Square gift card CLI - Command-line interface for Square payment links."""

from square_giftcard.cli.app import app

# Import command modules to register them with the app
from square_giftcard.cli.commands import auth, links

# Register sub-apps
app.add_typer(auth.app, name="auth", help="Merchant OAuth connections.")
app.add_typer(links.app, name="links", help="Payment link management.")


def main() -> None:
    """Entry point for the CLI."""
    app()


__all__ = ["app", "main"]

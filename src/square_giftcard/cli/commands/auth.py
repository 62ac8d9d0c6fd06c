"""Authentication commands."""

import webbrowser
from urllib.parse import parse_qs, urlparse

import typer

from square_giftcard.auth import ConnectionStore, SquareOAuth
from square_giftcard.auth.scopes import REQUIRED_SCOPES, missing_scopes, unknown_scopes
from square_giftcard.cli.async_runner import async_command
from square_giftcard.cli.client_factory import get_client
from square_giftcard.cli.config import CLIConfig, OutputFormat
from square_giftcard.cli.formatters import (
    console,
    format_output,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from square_giftcard.models.auth import OAuthErrorCode

app = typer.Typer(no_args_is_help=True)


def _require_oauth(config: CLIConfig) -> SquareOAuth:
    oauth = SquareOAuth(config.load_oauth_config())
    if not oauth.is_available:
        print_error("Square OAuth credentials are not configured.")
        print_info("Set SQUARE_OAUTH_CLIENT_ID and SQUARE_OAUTH_CLIENT_SECRET environment variables")
        print_info(f"Or add client_id and client_secret to {config.credentials_path}")
        raise typer.Exit(1)
    return oauth


def _is_bare_code(value: str) -> bool:
    value = value.strip()
    return "?" not in value and "=" not in value


def _parse_callback(value: str) -> tuple[str | None, str | None, str | None]:
    """Split a pasted redirect URL into (code, state, error).

    A bare authorization code is returned as-is with no state.
    """
    value = value.strip()
    if _is_bare_code(value):
        return value or None, None, None

    query = parse_qs(urlparse(value).query if "?" in value else value)

    def first(key: str) -> str | None:
        values = query.get(key)
        return values[0] if values else None

    return first("code"), first("state"), first("error")


@app.command("scopes")
def scopes(
    required: bool = typer.Option(
        False,
        "--required",
        "-r",
        help="Only show the scopes the gift card storefront requests.",
    ),
) -> None:
    """List Square OAuth scopes."""
    names = SquareOAuth.get_required_scopes() if required else SquareOAuth.get_available_scopes()
    for name in names:
        console.print(name)


@app.command("state")
def state() -> None:
    """Generate a fresh OAuth state value."""
    console.print(SquareOAuth.generate_state())


@app.command("pkce")
def pkce(
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Generate a fresh PKCE verifier and S256 challenge."""
    format_output(SquareOAuth.generate_pkce_pair(), output, title="PKCE")


@app.command("url")
def url(
    ctx: typer.Context,
    scope: list[str] | None = typer.Option(
        None,
        "--scope",
        help="Scope to request (repeatable, default: required scopes).",
    ),
    state_value: str | None = typer.Option(
        None,
        "--state",
        help="State value to embed (default: freshly generated).",
    ),
    code_challenge: str | None = typer.Option(
        None,
        "--code-challenge",
        help="PKCE S256 challenge to embed.",
    ),
) -> None:
    """Print an authorization URL for connecting a merchant."""
    config: CLIConfig = ctx.obj
    oauth = _require_oauth(config)

    requested = scope or list(REQUIRED_SCOPES)
    if unknown := unknown_scopes(requested):
        print_warning(f"Unknown scopes: {', '.join(unknown)}")

    state_value = state_value or oauth.generate_state()
    result = oauth.get_authorization_url(state_value, requested, code_challenge=code_challenge)
    if not result.success:
        print_error(result.error or "Failed to build authorization URL")
        raise typer.Exit(1)

    console.print(f"[link]{result.url}[/link]")
    print_info(f"State: {state_value}")


@app.command("login")
@async_command
async def login(
    ctx: typer.Context,
    no_browser: bool = typer.Option(
        False,
        "--no-browser",
        help="Don't open browser automatically.",
    ),
    use_pkce: bool = typer.Option(
        False,
        "--pkce",
        help="Protect the code exchange with PKCE.",
    ),
    scope: list[str] | None = typer.Option(
        None,
        "--scope",
        help="Scope to request (repeatable, default: required scopes).",
    ),
) -> None:
    """Connect a Square merchant account.

    This command runs the authorization-code flow:
    1. Opens browser for Square consent
    2. Prompts for the redirect URL (or the bare code)
    3. Checks state, exchanges the code and stores the connection
    """
    config: CLIConfig = ctx.obj
    _require_oauth(config)

    async with get_client(config) as client:
        oauth = client.oauth

        # Step 1: Fresh state (and PKCE pair) for this attempt
        expected_state = oauth.generate_state()
        pair = oauth.generate_pkce_pair() if use_pkce else None

        result = oauth.get_authorization_url(
            expected_state,
            scope or list(REQUIRED_SCOPES),
            code_challenge=pair.code_challenge if pair else None,
        )
        if not result.success or not result.url:
            print_error(result.error or "Failed to build authorization URL")
            raise typer.Exit(1)

        # Step 2: Open browser or show URL
        print_info(f"Starting OAuth flow for {config.environment}...")
        if no_browser:
            console.print("\nOpen this URL in your browser:")
        else:
            print_info("Opening browser for authorization...")
            webbrowser.open(result.url)
            console.print("\n[dim]If browser didn't open, visit:[/dim]")
        console.print(f"[link]{result.url}[/link]")

        # Step 3: Get the callback from the user
        console.print()
        pasted = typer.prompt("Paste the redirect URL (or the authorization code)")
        code, returned_state, error = _parse_callback(pasted)

        if error:
            print_error(f"Authorization was not granted: {error}")
            raise typer.Exit(1)
        if not code:
            print_error("No authorization code found.")
            raise typer.Exit(1)
        # A pasted redirect must carry the state we issued; only a bare code skips the check
        if not _is_bare_code(pasted) and not oauth.validate_state(
            returned_state or "", expected_state
        ):
            print_error("State mismatch - the redirect does not belong to this login attempt.")
            raise typer.Exit(1)

        # Step 4: Exchange code and store connection
        print_info("Exchanging authorization code for access token...")
        exchange = await client.connect_merchant(code, pair.code_verifier if pair else None)

        if not exchange.success or exchange.token is None:
            print_error(f"{exchange.error} ({exchange.error_code})")
            raise typer.Exit(1)

        token = exchange.token
        print_success(
            f"Connected merchant {token.merchant_id}. Saved to {config.connections_path}"
        )
        if token.expires_at:
            print_info(f"Access token expires at {token.expires_at:%Y-%m-%d %H:%M %Z}")


@app.command("refresh")
@async_command
async def refresh(
    ctx: typer.Context,
    merchant_id: str = typer.Argument(..., help="Merchant ID of a stored connection."),
) -> None:
    """Refresh a connected merchant's access token."""
    config: CLIConfig = ctx.obj
    _require_oauth(config)

    async with get_client(config) as client:
        print_info("Refreshing access token...")
        result = await client.refresh_connection(merchant_id)

        if not result.success or result.token is None:
            print_error(f"{result.error} ({result.error_code})")
            raise typer.Exit(1)

        print_success("Token refreshed successfully!")
        if result.token.expires_at:
            print_info(f"Access token expires at {result.token.expires_at:%Y-%m-%d %H:%M %Z}")


@app.command("revoke")
@async_command
async def revoke(
    ctx: typer.Context,
    merchant_id: str = typer.Argument(..., help="Merchant ID of a stored connection."),
    forget: bool = typer.Option(
        False,
        "--forget",
        help="Remove the local connection even if Square rejects the revocation.",
    ),
) -> None:
    """Revoke a merchant's access token and remove the connection."""
    config: CLIConfig = ctx.obj
    _require_oauth(config)

    async with get_client(config) as client:
        print_info("Revoking token on Square...")
        result = await client.revoke_connection(merchant_id)

        if result.success:
            print_success(f"Disconnected merchant {merchant_id}.")
            return

        print_error(f"Failed to revoke token: {result.error} ({result.error_code})")
        if forget:
            client.connection_store.remove(merchant_id)
            print_info("Removed local connection anyway.")
        raise typer.Exit(1)


@app.command("status")
@async_command
async def status(
    ctx: typer.Context,
    merchant_id: str = typer.Argument(..., help="Merchant ID of a stored connection."),
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """Show scopes and expiry of a connected merchant's token."""
    config: CLIConfig = ctx.obj
    _require_oauth(config)

    async with get_client(config) as client:
        connection = client.connection_store.require(merchant_id)
        result = await client.oauth.get_token_status(connection.token.access_token)

        if not result.success or result.status is None:
            print_error(f"{result.error} ({result.error_code})")
            if result.error_code == OAuthErrorCode.TOKEN_STATUS_FAILED:
                print_info(f"Run 'square-giftcard auth refresh {merchant_id}' to renew the token.")
            raise typer.Exit(1)

        info = result.status
        format_output(
            {
                "merchant_id": info.merchant_id or merchant_id,
                "expires_at": info.expires_at.isoformat() if info.expires_at else "",
                "scopes": " ".join(info.scopes),
            },
            output,
            title=f"Token status for {merchant_id}",
        )

        if missing := missing_scopes(info.scopes):
            print_warning(f"Missing required scopes: {', '.join(missing)}")


@app.command("connections")
def connections(
    ctx: typer.Context,
    output: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--output",
        "-o",
        help="Output format.",
    ),
) -> None:
    """List stored merchant connections."""
    config: CLIConfig = ctx.obj

    store = ConnectionStore(path=config.connections_path)
    rows = [
        {
            "merchant_id": c.merchant_id,
            "connected_at": c.connected_at.strftime("%Y-%m-%d %H:%M"),
            "expires_at": c.token.expires_at.strftime("%Y-%m-%d %H:%M") if c.token.expires_at else "",
            "expired": c.token.is_expired(),
        }
        for c in store.list()
    ]

    format_output(rows, output, title=f"Connections ({config.environment})")

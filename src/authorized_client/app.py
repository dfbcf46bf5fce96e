"""Typer application for trying out client-credentials settings by hand.

``authorized-client`` loads :class:`~authorized_client.models.Settings`
(see :func:`~authorized_client.config.load_settings`), connects an
:class:`~authorized_client.client.AuthorizedClient` and performs a single
call::

    authorized-client -s settings.json token
    authorized-client -s settings.json get https://api.example.com/me
    authorized-client -s settings.json post https://api.example.com/jobs --data '{"n": 1}'

Response data goes to stdout, diagnostics to stderr. Library errors exit
with the code carried by the exception (see :mod:`authorized_client.exit_codes`).
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from authorized_client import __version__
from authorized_client.client import AuthorizedClient
from authorized_client.config import load_settings
from authorized_client.exceptions import AuthorizedClientError
from authorized_client.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from authorized_client.models import Settings
from authorized_client.output import (
    OutputFormat,
    OutputManager,
    get_output,
    set_output,
    setup_logging,
)

T = TypeVar("T")

app = typer.Typer(
    name="authorized-client",
    help="Call OAuth2 client-credentials protected endpoints.",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"authorized-client {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings_path: Optional[Path] = typer.Option(
        None,
        "--settings",
        "-s",
        help="JSON settings file. AUTHORIZED_CLIENT_* variables override it.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Set up output and logging, and remember the settings path for sub-commands."""
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    setup_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["settings_path"] = settings_path


def create_client(settings: Settings) -> AuthorizedClient:
    """Build the client used by every command. Tests replace this."""
    return AuthorizedClient(settings)


def _run(ctx: typer.Context, call: Callable[[AuthorizedClient], Awaitable[T]]) -> T:
    """Load settings, open a client, await *call* and map library errors to exit codes."""

    async def _main() -> T:
        settings = load_settings(ctx.obj.get("settings_path"))
        async with create_client(settings) as client:
            return await call(client)

    try:
        return asyncio.run(_main())
    except AuthorizedClientError as exc:
        get_output().error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _parse_data(data: str) -> Any:
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        get_output().error(f"--data is not valid JSON: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None


def _mask(token: str) -> str:
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-4:]}"


@app.command("token")
def token_command(
    ctx: typer.Context,
    show_token: bool = typer.Option(
        False, "--show-token", help="Print the full access token instead of a masked one."
    ),
) -> None:
    """Fetch a token and show when it expires.

    Example::

        authorized-client -s settings.json token --json
    """

    async def _call(client: AuthorizedClient) -> dict[str, Any]:
        credentials = await client.credentials()
        return {
            "access_token": credentials.access_token if show_token else _mask(credentials.access_token),
            "token_type": credentials.token_type,
            "expires_at": credentials.expires_at.isoformat(),
            "scope": credentials.scope,
        }

    output = get_output()
    output.format_response(_run(ctx, _call))


@app.command("get")
def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute URL of the protected endpoint."),
    text: bool = typer.Option(False, "--text", help="Print the raw body instead of decoding JSON."),
) -> None:
    """Send an authenticated GET request."""
    output = get_output()
    if text:
        output.print_data(_run(ctx, lambda client: client.get_text(url)))
    else:
        output.format_response(_run(ctx, lambda client: client.get(url)))


@app.command("post")
def post_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute URL of the protected endpoint."),
    data: str = typer.Option("{}", "--data", "-d", help="JSON request body."),
    text: bool = typer.Option(False, "--text", help="Print the raw body instead of decoding JSON."),
    ignore: bool = typer.Option(False, "--ignore", help="Discard the response body."),
) -> None:
    """Send an authenticated POST request with a JSON body."""
    output = get_output()
    if text and ignore:
        output.error("--text and --ignore are mutually exclusive")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    body = _parse_data(data)
    if ignore:
        _run(ctx, lambda client: client.post_ignore(url, body))
        output.info("Request accepted (HTTP 200)")
    elif text:
        output.print_data(_run(ctx, lambda client: client.post_text(url, body)))
    else:
        output.format_response(_run(ctx, lambda client: client.post(url, body)))


def main() -> None:
    """Console-script entry point for ``authorized-client``."""
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except AuthorizedClientError as exc:
        get_output().error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:  # noqa: BLE001
        get_output().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)

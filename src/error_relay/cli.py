"""Command-line interface for error-relay.

Commands:
    serve    Start the HTTP service, notification pipeline and load bot
    version  Print the installed version
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from error_relay.core.config import Settings, load_env_file, mask_webhook_url
from error_relay.core.exceptions import ConfigError

EXIT_SUCCESS = 0
EXIT_ERROR = 1

SEPARATOR = "=" * 60

ENDPOINTS = (
    "/health",
    "/api/error/database",
    "/api/error/validation",
    "/api/error/network",
    "/api/error/auth",
    "/api/error/payment",
    "/api/error/panic",
    "/api/error/uncaught-panic",
)

console = Console()

app = typer.Typer(
    name="error-relay",
    help="Error-event notification pipeline with chat and log sinks.",
    no_args_is_help=True,
)


def _error(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging with a Rich handler.

    Args:
        verbose: Log at DEBUG instead of INFO.

    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def print_startup_info(settings: Settings) -> None:
    """Print the startup banner with configuration and endpoints."""
    console.print(f"\n{SEPARATOR}")
    console.print(f"Server starting on port {settings.port}")
    console.print(f"ELK URL: {settings.elk_url or 'not configured'}")
    console.print(f"Discord Webhook: {mask_webhook_url(settings.discord_webhook_url)}")
    if settings.bot_enabled:
        console.print(f"Error Bot interval: {settings.bot_interval:g}s")
    else:
        console.print("Error Bot: disabled")
    console.print(f"Environment: {settings.environment}")
    console.print(f"{SEPARATOR}\n")

    console.print("Available endpoints:")
    for endpoint in ENDPOINTS:
        console.print(f"   GET  {endpoint}")
    console.print(f"\n{SEPARATOR}\n")


@app.command("serve")
def serve_command(
    host: str = typer.Option(
        "0.0.0.0",
        "--host",
        # NOTE: No -h short form - conflicts with --help
        help="Address to bind server to",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to bind server to (overrides PORT)",
    ),
    env_file: str | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file or its directory (default: current directory)",
    ),
    no_bot: bool = typer.Option(
        False,
        "--no-bot",
        help="Do not start the load generator bot",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Start the error-relay HTTP service."""
    import asyncio

    from error_relay.server import ErrorRelayServer

    setup_logging(verbose)
    load_env_file(env_file)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_ERROR) from None

    overrides: dict[str, object] = {}
    if port is not None:
        overrides["port"] = port
    if no_bot:
        overrides["bot_enabled"] = False
    if overrides:
        settings = settings.model_copy(update=overrides)

    print_startup_info(settings)

    server = ErrorRelayServer(settings, host=host)
    log_level = "debug" if verbose else "info"

    try:
        asyncio.run(server.run(log_level=log_level))
    except OSError as e:
        import errno

        if e.errno == errno.EADDRINUSE:
            _error(f"Port {settings.port} is already in use")
            raise typer.Exit(code=EXIT_ERROR) from None
        raise

    console.print("\n[yellow]Server stopped.[/yellow]")
    raise typer.Exit(code=EXIT_SUCCESS)


@app.command("version")
def version_command() -> None:
    """Print the installed error-relay version."""
    from error_relay import __version__

    console.print(f"error-relay {__version__}")


if __name__ == "__main__":
    app()

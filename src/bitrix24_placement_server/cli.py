"""CLI entry point for bitrix24-placement-server."""

import asyncio

import typer
import uvicorn

from bitrix24_placement_server import __version__
from bitrix24_placement_server.core.config import SettingsBackend, settings

app = typer.Typer(
    name="bitrix24-placement-server",
    help="Bitrix24 application server: install, token refresh and contact placement",
    no_args_is_help=True,
)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides config)"),
    port: int = typer.Option(None, help="Port to bind to (overrides config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the HTTP server.

    Example:
        bitrix24-placement-server serve
        bitrix24-placement-server serve --host 0.0.0.0 --port 8080 --reload
    """
    uvicorn.run(
        "bitrix24_placement_server.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def status() -> None:
    """Show installation status (never prints token or secret values)."""
    if settings.settings_backend == SettingsBackend.MEMORY:
        typer.echo("Settings backend is 'memory': nothing persists between processes.")
        raise typer.Exit(code=1)

    from bitrix24_placement_server.core.database import (
        create_engine,
        create_session_maker,
        init_database,
    )
    from bitrix24_placement_server.services.settings_store import create_settings_store

    async def _load():
        db_engine = create_engine(settings.database_url)
        try:
            await init_database(db_engine)
            store = create_settings_store(settings, create_session_maker(db_engine))
            return await store.get()
        finally:
            await db_engine.dispose()

    record = asyncio.run(_load())
    if record is None:
        typer.echo("Not installed: no settings stored.")
        raise typer.Exit(code=1)

    typer.echo(f"Installed:        {record.is_installed()}")
    typer.echo(f"Domain:           {record.domain or '-'}")
    # Webhook URLs embed their key
    endpoint = "(webhook URL, hidden)" if record.has_webhook_endpoint else record.rest_endpoint()
    typer.echo(f"Client endpoint:  {endpoint or '-'}")
    typer.echo(f"Local app:        {record.is_local_app}")
    typer.echo(f"Webhook:          {record.is_web_hook}")
    typer.echo(f"Access token:     {'set' if record.access_token else 'not set'}")
    typer.echo(f"Refresh token:    {'set' if record.refresh_token else 'not set'}")


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"bitrix24-placement-server v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()

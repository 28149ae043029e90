"""Command-line interface for Formpulse."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

from formpulse import __version__
from formpulse.config import load_settings

if TYPE_CHECKING:
    from formpulse.dashboard import DashboardSession

app = typer.Typer(
    name="formpulse",
    help="Live response statistics for published forms.",
    no_args_is_help=True,
)
console = Console(width=min(100, Console().width))


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"formpulse {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version", "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Live response statistics for published forms."""


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@app.command()
def check(
    path: Annotated[
        Path,
        typer.Argument(help="JSON file: a form document or a bare list of fields."),
    ],
) -> None:
    """Validate a form definition and list its fields."""
    from formpulse.errors import SchemaError
    from formpulse.schema import parse_fields, parse_form

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        console.print(f"[red]Cannot read {path}:[/red] {exc}")
        raise typer.Exit(1)
    except ValueError as exc:
        console.print(f"[red]Not valid JSON:[/red] {exc}")
        raise typer.Exit(1)

    try:
        if isinstance(raw, list):
            title = path.stem
            fields = parse_fields(raw)
        else:
            form = parse_form(raw)
            title = form.title
            fields = form.fields
    except SchemaError as exc:
        console.print(f"[red]Schema error:[/red] {exc}")
        raise typer.Exit(1)

    table = Table(title=title, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("id")
    table.add_column("type")
    table.add_column("label")
    table.add_column("required", justify="center")
    for i, field in enumerate(fields, start=1):
        table.add_row(
            str(i), field.id, field.type, field.label, "[green]✓[/green]" if field.required else ""
        )
    console.print(table)
    console.print(f"[green]{len(fields)} field(s) ok[/green]")


# ---------------------------------------------------------------------------
# watch
# ---------------------------------------------------------------------------


def _render(session: DashboardSession) -> Table:
    """Build the live bucket table for a dashboard session."""
    from formpulse.dashboard import rows

    status = "[green]connected[/green]" if session.connected else "[dim]disconnected[/dim]"
    title = session.form.title if session.form else session.form_id
    table = Table(title=f"{title}  ·  Live: {status}", show_lines=True)
    table.add_column("Field")
    table.add_column("Value")
    table.add_column("Count", justify="right")
    fields = session.form.fields if session.form else []
    for entry in rows(session.snapshot(), fields):
        if not entry.buckets:
            table.add_row(entry.label, "[dim]no answers yet[/dim]", "")
            continue
        for i, (key, count) in enumerate(entry.buckets):
            table.add_row(entry.label if i == 0 else "", key, str(count))
    return table


async def _watch(form_id: str, api_base: str, ws_base: str, timeout: float, refresh: float) -> None:
    from rich.live import Live

    from formpulse.api_client import FormsClient
    from formpulse.dashboard import DashboardSession
    from formpulse.live.channel import WebSocketChannel

    async with FormsClient(api_base, timeout=timeout) as client:
        session = DashboardSession(
            form_id, client, lambda fid: WebSocketChannel(ws_base, fid, open_timeout=timeout)
        )
        try:
            await session.start()
            await session.ready()
            with Live(_render(session), console=console, refresh_per_second=4) as live:
                while True:
                    await asyncio.sleep(refresh)
                    live.update(_render(session))
        finally:
            await session.close()


@app.command()
def watch(
    form_id: Annotated[str, typer.Argument(help="Form to watch.")],
    api_base: Annotated[
        str | None,
        typer.Option("--api", help="Forms API base URL (default: FORMPULSE_API_BASE)."),
    ] = None,
    ws_base: Annotated[
        str | None,
        typer.Option("--ws", help="Push channel URL (default: FORMPULSE_WS_BASE)."),
    ] = None,
    refresh: Annotated[
        float,
        typer.Option("--refresh", help="Seconds between table redraws."),
    ] = 0.5,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Show live bucket counts for a form until interrupted."""
    from formpulse.api_client import check_api
    from formpulse.errors import ApiError, SchemaError
    from formpulse.logging import setup_logging

    settings = load_settings(api_base=api_base, ws_base=ws_base)
    setup_logging(log_dir=settings.log_dir, verbose=verbose)

    ok, error = check_api(settings.api_base, settings.request_timeout)
    if ok is not True:
        console.print(f"[red]Forms API not reachable at {settings.api_base}:[/red] {error}")
        raise typer.Exit(1)

    try:
        asyncio.run(
            _watch(form_id, settings.api_base, settings.ws_base, settings.request_timeout, refresh)
        )
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
    except ApiError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    except SchemaError as exc:
        console.print(f"[red]Form has an invalid schema:[/red] {exc}")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# serve
# ---------------------------------------------------------------------------


@app.command()
def serve(
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port to serve on (default: FORMPULSE_PORT)."),
    ] = None,
    db_url: Annotated[
        str | None,
        typer.Option("--db", help="Database URL (default: in-memory SQLite)."),
    ] = None,
    dev: Annotated[
        bool,
        typer.Option("--dev", help="Development mode: auto-reload on Python changes."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Run the reference forms API and push channel."""
    try:
        import uvicorn
    except ImportError:
        console.print("[red]Server dependencies not installed.[/red]")
        console.print("Install with: [bold]pip install formpulse[serve][/bold]")
        raise typer.Exit(1)

    settings = load_settings(port=port, db_url=db_url)
    console.print(f"\n  API: [bold cyan]http://127.0.0.1:{settings.port}/api[/bold cyan]")
    console.print(f"  Live: [bold cyan]ws://127.0.0.1:{settings.port}/ws[/bold cyan]\n")

    if dev:
        # uvicorn calls create_app() itself on reload; pass options via env
        import os

        os.environ["_FORMPULSE_DB_URL"] = settings.db_url
        if settings.log_dir is not None:
            os.environ["_FORMPULSE_LOG_DIR"] = str(settings.log_dir.resolve())
        if verbose:
            os.environ["_FORMPULSE_VERBOSE"] = "1"

        uvicorn.run(
            "formpulse.server.app:create_app",
            host="127.0.0.1",
            port=settings.port,
            reload=True,
            factory=True,
            log_level="info" if verbose else "warning",
        )
    else:
        from formpulse.logging import setup_logging
        from formpulse.server.app import create_app

        setup_logging(log_dir=settings.log_dir, verbose=verbose)
        app_instance = create_app(
            db_url=settings.db_url,
            cors_origin=settings.cors_origin,
            verbose=verbose,
        )
        uvicorn.run(
            app_instance,
            host="127.0.0.1",
            port=settings.port,
            log_level="info" if verbose else "warning",
        )

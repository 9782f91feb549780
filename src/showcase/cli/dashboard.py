"""
Showcase CLI - Dashboard command.

Show the aggregated statistics dashboard in the terminal, or serve it
(with the board and gallery lists) over HTTP.
"""

import asyncio

import typer
from rich.console import Console

from showcase.cli.context import build_store, load_cli_config, open_store
from showcase.cli.errors import ExitCode, print_error, print_store_error
from showcase.core.config import ShowcaseConfig
from showcase.core.dashboard import DashboardCache, DashboardError, DashboardSnapshot
from showcase.dashboard import DashboardRenderer

app = typer.Typer(
    name="dashboard",
    help="Show statistics for the showcase site",
    no_args_is_help=False,
)

console = Console()


async def _load_snapshot(config: ShowcaseConfig, refresh: bool) -> DashboardSnapshot:
    async with open_store(config) as store:
        cache = DashboardCache.from_store(store)
        return await cache.get(force_refresh=refresh)


@app.callback(invoke_without_command=True)
def dashboard(
    ctx: typer.Context,
    refresh: bool = typer.Option(
        False,
        "--refresh",
        "-r",
        help="Recompute every slice instead of using a cached snapshot",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output the snapshot as JSON",
    ),
) -> None:
    """
    Show the statistics dashboard.

    Aggregates projects, board posts, users and the tech stack into one
    snapshot. If only the board, user or tech data cannot be read, those
    sections show zeros and are flagged as unavailable.

    Examples:
        showcase dashboard              # Render the dashboard
        showcase dashboard --json       # Snapshot as JSON
        showcase dashboard serve        # Serve the HTTP API
    """
    if ctx.invoked_subcommand is not None:
        return

    debug = ctx.obj.get("debug", False) if ctx.obj else False
    config = load_cli_config()

    try:
        snapshot = asyncio.run(_load_snapshot(config, refresh))
    except DashboardError as e:
        print_store_error(e.cause, problem="Failed to load dashboard statistics")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if json_output:
        print(snapshot.model_dump_json(indent=2))
        return

    if debug and snapshot.degraded:
        console.print(f"[dim]Degraded slices: {', '.join(snapshot.degraded_slices)}[/dim]")

    renderer = DashboardRenderer(console=console)
    console.print(renderer.render_snapshot(snapshot))


@app.command()
def serve(
    ctx: typer.Context,
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port for the API server (default: server.port from config)",
    ),
    host: str | None = typer.Option(
        None,
        "--host",
        help="Interface to bind (default: server.host from config)",
    ),
) -> None:
    """
    Serve the dashboard and list API with uvicorn.

    Examples:
        showcase dashboard serve
        showcase dashboard serve --port 3000
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False

    import uvicorn

    from showcase.api import create_app

    config = load_cli_config()
    store = build_store(config)
    bind_host = host or config.server.host
    bind_port = port or config.server.port

    url = f"http://{bind_host}:{bind_port}"
    console.print("[bold cyan]Starting showcase API...[/bold cyan]")
    console.print(f"[dim]Store: {store.store_name}[/dim]")
    console.print(f"[dim]API: {url}/api/dashboard[/dim]")
    console.print(f"[dim]Docs: {url}/docs[/dim]")
    console.print("\n[dim]Press Ctrl+C to stop[/dim]\n")

    try:
        uvicorn.run(
            create_app(store=store, config=config),
            host=bind_host,
            port=bind_port,
            log_level="debug" if debug else "warning",
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")
        raise typer.Exit(ExitCode.SUCCESS)
    except OSError as e:
        print_error(
            f"Could not start server on {url}",
            reason=str(e),
            solution="showcase dashboard serve --port <another port>",
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

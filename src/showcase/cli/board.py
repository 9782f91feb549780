"""
Showcase CLI - Board commands.

List discussion board posts once, or watch them live as the store changes.
"""

import asyncio
import logging

import typer
from rich.console import Console
from rich.live import Live

from showcase.cli.context import load_cli_config, open_store
from showcase.cli.errors import ExitCode, print_error, print_store_error
from showcase.core.config import ShowcaseConfig
from showcase.core.feed import (
    ALL,
    DEFAULT_PAGE_SIZE,
    ConnectionStatus,
    FeedError,
    FeedState,
    FilterOptions,
    RealtimeFeedController,
)
from showcase.core.records import PostStatus
from showcase.core.services import BoardService, PostPage
from showcase.core.store import StoreError
from showcase.dashboard import DashboardRenderer

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="board",
    help="List and watch discussion board posts",
    no_args_is_help=True,
)

console = Console()

CATEGORY_OPTION = typer.Option(ALL, "--category", "-c", help="Category to show, or 'all'")
STATUS_OPTION = typer.Option(
    PostStatus.PUBLISHED.value, "--status", help="Post status to show, or 'all'"
)
SEARCH_OPTION = typer.Option("", "--search", "-s", help="Case-insensitive search term")
SORT_OPTION = typer.Option(
    "latest", "--sort", help="Sort order: latest, oldest, popular or mostViewed"
)
LIMIT_OPTION = typer.Option(DEFAULT_PAGE_SIZE, "--limit", "-n", help="Number of posts to show")


def _options(category: str, status: str, search: str, sort: str, limit: int) -> FilterOptions:
    return FilterOptions(
        category=category,
        status=status,
        search_term=search,
        sort_key=sort,
        page_size=limit,
    )


async def _list_posts(config: ShowcaseConfig, options: FilterOptions) -> PostPage:
    async with open_store(config) as store:
        return await BoardService(store).list_posts(options)


@app.command(name="list")
def list_posts(
    category: str = CATEGORY_OPTION,
    status: str = STATUS_OPTION,
    search: str = SEARCH_OPTION,
    sort: str = SORT_OPTION,
    limit: int = LIMIT_OPTION,
    json_output: bool = typer.Option(False, "--json", help="Output the page as JSON"),
) -> None:
    """
    List board posts once.

    Examples:
        showcase board list
        showcase board list --category tip --sort popular
        showcase board list --search async --status all --json
    """
    options = _options(category, status, search, sort, limit)
    config = load_cli_config()

    try:
        page = asyncio.run(_list_posts(config, options))
    except StoreError as e:
        print_store_error(e, problem="Failed to load board posts")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if json_output:
        print(page.model_dump_json(indent=2))
        return

    state = FeedState(
        connection_status=ConnectionStatus.CONNECTED,
        current_options=options,
        visible_records=list(page.posts),
        total_matches=page.pagination.total_items,
    )
    console.print(DashboardRenderer(console=console).render_feed(state))


async def _watch(
    config: ShowcaseConfig,
    options: FilterOptions,
    duration: float,
    renderer: DashboardRenderer,
) -> FeedError | None:
    """
    Drive a feed controller until the duration elapses or the feed fails.

    Returns:
        The feed error that ended the watch, if any
    """
    failed = asyncio.Event()
    last_error: FeedError | None = None

    async with open_store(config) as store:
        controller = RealtimeFeedController(store, options=options)

        with Live(
            renderer.render_feed(controller.state),
            console=console,
            refresh_per_second=4,
            screen=False,
        ) as live:

            def on_state(state: FeedState) -> None:
                nonlocal last_error
                live.update(renderer.render_feed(state))
                if state.connection_status is ConnectionStatus.ERROR:
                    last_error = state.error
                    failed.set()

            controller.add_listener(on_state)
            controller.start()
            try:
                if duration > 0:
                    await asyncio.wait_for(failed.wait(), timeout=duration)
                else:
                    await failed.wait()
            except asyncio.TimeoutError:
                logger.debug("Watch duration of %.1fs elapsed", duration)
            finally:
                controller.stop()

    return last_error


@app.command()
def watch(
    category: str = CATEGORY_OPTION,
    status: str = STATUS_OPTION,
    search: str = SEARCH_OPTION,
    sort: str = SORT_OPTION,
    limit: int = LIMIT_OPTION,
    duration: float = typer.Option(
        0.0,
        "--duration",
        "-d",
        help="Stop after this many seconds (0 = until Ctrl+C)",
    ),
) -> None:
    """
    Watch board posts live.

    The view updates whenever the store reports a change. If the
    subscription fails, the last loaded posts stay on screen marked as out
    of date and the command exits with an error.

    Examples:
        showcase board watch
        showcase board watch --category question --sort mostViewed
        showcase board watch --duration 60
    """
    if duration < 0:
        print_error("--duration must not be negative", solution="showcase board watch -d 30")
        raise typer.Exit(ExitCode.USER_ERROR)

    options = _options(category, status, search, sort, limit)
    config = load_cli_config()
    renderer = DashboardRenderer(console=console)

    console.print("[dim]Press Ctrl+C to exit[/dim]\n")
    try:
        error = asyncio.run(_watch(config, options, duration, renderer))
    except KeyboardInterrupt:
        console.print("\n[yellow]Watch stopped by user[/yellow]")
        raise typer.Exit(ExitCode.SUCCESS)

    if error is not None:
        print_error(
            "Lost connection to the board feed",
            reason=error.message,
            solution="showcase board watch" if error.retryable else None,
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

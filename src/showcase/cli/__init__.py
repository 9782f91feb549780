"""
Showcase CLI - Main application entry point.

Wires the `dashboard` and `board` command groups into one Typer app.
"""

import logging

import typer
from rich.console import Console

from showcase import __version__
from showcase.cli import board, dashboard
from showcase.core.config.env import load_layered_env

app = typer.Typer(
    name="showcase",
    help="Statistics dashboard and live board feed for the showcase site",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    Showcase - statistics and live board feed.

    Reads the gallery projects, board posts, comments and users from the
    configured record store (a local JSON file by default).

    Common Workflows:
        showcase dashboard                 # Statistics snapshot
        showcase dashboard serve           # HTTP API for the site
        showcase board list --sort popular # Most liked posts
        showcase board watch               # Live board feed

    Configuration:
        .showcase.json                     # Project config
        SHOWCASE_STORE=json|memory|http    # Store backend
        SHOWCASE_DATA_PATH=data.json       # JSON store file
        SHOWCASE_STORE_URL=https://...     # HTTP store base URL
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    if debug:
        logging.basicConfig(level=logging.DEBUG)

    ctx.obj = {"debug": debug}


app.add_typer(dashboard.app, name="dashboard")
app.add_typer(board.app, name="board")


@app.command()
def version() -> None:
    """Show showcase version and exit."""
    console.print(f"showcase version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]

"""
Shared setup for CLI commands: configuration and store lifetime.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import typer

from showcase.cli.errors import ExitCode, print_error
from showcase.core.config import ShowcaseConfig, load_config
from showcase.core.store import RecordStore, get_store
from showcase.utils.project import find_project_root

logger = logging.getLogger(__name__)


def load_cli_config() -> ShowcaseConfig:
    """Load config for the project containing the current directory."""
    project_dir = find_project_root() or Path.cwd()
    logger.debug("Loading config for %s", project_dir)
    return load_config(project_dir)


def build_store(config: ShowcaseConfig) -> RecordStore:
    """
    Build the configured record store, exiting with USER_ERROR if it is
    misconfigured.
    """
    try:
        return get_store(config=config.store)
    except ValueError as e:
        print_error(
            "Record store is not configured correctly",
            reason=str(e),
            solution="export SHOWCASE_STORE=json  # or set store.backend in .showcase.json",
        )
        raise typer.Exit(ExitCode.USER_ERROR)


@asynccontextmanager
async def open_store(config: ShowcaseConfig) -> AsyncIterator[RecordStore]:
    """Yield the configured store and close its client afterwards."""
    store = build_store(config)
    try:
        yield store
    finally:
        aclose = getattr(store, "aclose", None)
        if aclose is not None:
            await aclose()

"""
Locate the site project that the CLI is being run in.
"""

from pathlib import Path

# Checked in this order at each directory level
PROJECT_ROOT_MARKERS = (
    ".showcase.json",
    ".env",
    ".git",
)


def find_project_root(start: Path | None = None) -> Path | None:
    """
    Walk up from ``start`` to the nearest directory holding a project marker.

    Args:
        start: First directory to check (defaults to the current directory)

    Returns:
        The project directory, or None when the filesystem root is reached

    Example:
        >>> find_project_root(Path("/site/src/components"))
        PosixPath('/site')
    """
    here = (start or Path.cwd()).resolve()
    for candidate in (here, *here.parents):
        if any((candidate / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return candidate
    return None

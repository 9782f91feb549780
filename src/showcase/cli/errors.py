"""
Standardized error handling and exit codes for the showcase CLI.

Consistent error messages with actionable guidance, and the exit codes
every command uses.
"""

from enum import IntEnum

from rich.console import Console

from showcase.core.store.errors import FailureKind, StoreError

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for showcase CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including store failures."""

    USER_ERROR = 2
    """Configuration or input error (actionable by the user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Unknown store backend 'mongo'",
        ...     reason="Available backends: json, memory, http",
        ...     solution="export SHOWCASE_STORE=json",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


_STORE_SOLUTIONS = {
    FailureKind.PERMISSION: "Check the store's access rules and SHOWCASE_STORE_TOKEN",
    FailureKind.CONNECTIVITY: "Check your network connection and run the command again",
}


def print_store_error(error: StoreError, problem: str = "Record store request failed") -> None:
    """Print a classified store failure with guidance for its kind."""
    print_error(
        problem,
        reason=error.user_message(),
        solution=_STORE_SOLUTIONS.get(error.kind),
    )


"""Rich console utilities for styled terminal output.

This module provides a consistent interface for all CLI output using the
Rich library. Output goes to stderr, matching how operators pipe and
capture the tool's logs.
"""

from collections.abc import Generator, Iterable
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
        "dry": "blue",
    }
)

# Seal state -> markup used in the pod status table
_SEAL_STATE_STYLES = {
    "unsealed": "[success]unsealed[/success]",
    "sealed": "[error]sealed[/error]",
}

# Shared console instance
console = Console(theme=_THEME, stderr=True)


def info(message: str) -> None:
    """Print an informational message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message.

    Args:
        message: The message to display.

    """
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: The message to display.

    """
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message.

    Args:
        message: The message to display.

    """
    console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Print a sub-step message."""
    console.print(f"[muted]•[/muted] {message}")


def dry_run(message: str) -> None:
    """Print a message describing what a real run would do."""
    console.print(f"[dry][DRY-RUN][/dry] {message}")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while performing an operation.

    Args:
        message: The status message to display.

    Yields:
        None

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def summary_panel(title: str, items: dict[str, str], *, border_style: str = "green") -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display.
        border_style: Rich style for the panel border.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", value)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style=border_style))


def pod_table(rows: Iterable[tuple[str, str, str]]) -> None:
    """Print a table of pods with their phase and seal state.

    Args:
        rows: (pod name, phase, seal state) tuples. Seal states other than
              'sealed' and 'unsealed' are shown as warnings.

    """
    table = Table(title="OpenBao pods", title_style="bold")
    table.add_column("POD NAME", style="bold")
    table.add_column("STATUS")
    table.add_column("SEALED")

    for name, phase, seal_state in rows:
        table.add_row(name, phase, _SEAL_STATE_STYLES.get(seal_state, f"[warning]{seal_state}[/warning]"))

    console.print(table)


def newline() -> None:
    """Print an empty line."""
    console.print()

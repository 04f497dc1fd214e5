"""Shared Rich output helpers for skeletor.

All user-facing output goes through the module-level ``console`` so tests
and embedding applications can swap it for one that records output.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def format_mode(mode: int) -> str:
    """Format permission bits the way ``ls -l`` shows them.

    Examples::

        format_mode(0o644) -> "rw-r--r--"
        format_mode(0o755) -> "rwxr-xr-x"
    """
    chars = "rwxrwxrwx"
    return "".join(ch if mode & (1 << (8 - i)) else "-" for i, ch in enumerate(chars))

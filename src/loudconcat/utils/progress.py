"""Console progress reporting using Rich."""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console(stderr=True)


def _stamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def log(message: str, *, style: str = "bold") -> None:
    """Log a timestamped message."""
    console.print(f"[dim]\\[{_stamp()}][/dim] {message}", style=style, highlight=False)


def log_step(step: str, message: str) -> None:
    """Log a processing step for one stage."""
    console.print(
        f"[dim]\\[{_stamp()}][/dim] [bold cyan]{step}[/bold cyan] {message}",
        highlight=False,
    )


def log_success(message: str) -> None:
    log(f"[green]✓[/green] {message}", style="")


def log_warning(message: str) -> None:
    log(f"[yellow]⚠[/yellow] {message}", style="")


def log_error(message: str) -> None:
    log(f"[red]✗[/red] {message}", style="")


def log_engine_line(line: str) -> None:
    """Echo one raw line of engine output."""
    console.print(f"  [dim]{escape(line)}[/dim]", highlight=False)


def show_batch_summary(rows: list[tuple[str, str, str, str]], duration_seconds: float) -> None:
    """Show a per-file summary panel at the end of a batch.

    Each row is (file, state, loudness, output).
    """
    table = Table(box=None, padding=(0, 2))
    table.add_column("File", style="bold")
    table.add_column("State")
    table.add_column("Source loudness")
    table.add_column("Output")

    for row in rows:
        table.add_row(*(escape(cell) for cell in row))

    mins = int(duration_seconds) // 60
    secs = int(duration_seconds) % 60
    console.print(
        Panel(
            table,
            title="[bold]Batch Summary[/bold]",
            subtitle=f"{mins}m{secs:02d}s",
            border_style="green",
        )
    )

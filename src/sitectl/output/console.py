"""Rich Console factory, theme, and the bootstrap report for sitectl output.

Consoles render to a StringIO buffer so every renderer keeps a
``render_*() -> str`` contract.  In non-TTY environments (tests, pipes) Rich
automatically disables color codes.
"""

from __future__ import annotations

from collections.abc import Iterable
from io import StringIO

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from sitectl.app.phases import PhaseRecord

SITE_THEME = Theme(
    {
        "site.ok": "bold green",
        "site.error": "bold red",
        "site.phase": "bold cyan",
        "site.time": "magenta",
        "site.dim": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=SITE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def render_bootstrap_report(
    timings: Iterable[PhaseRecord],
    *,
    site_name: str,
    no_color: bool = False,
) -> str:
    """Render per-phase timings and the total as a table."""
    console = create_console(no_color=no_color)
    records = list(timings)

    table = Table(title=f"{site_name}: bootstrap", title_justify="left")
    table.add_column("Phase", style="site.phase")
    table.add_column("Time (s)", style="site.time", justify="right")
    for record in records:
        table.add_row(record.title, f"{record.elapsed:.3f}")
    table.add_row("Total", f"{sum(r.elapsed for r in records):.3f}", style="bold")

    console.print(table)
    return get_output(console)

"""Rich Console factory and theme for rentalctl output.

Consoles render into a StringIO buffer so renderers keep the
``format_result() -> str`` contract.  Outside a terminal (tests, pipes)
Rich leaves out color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

RENTAL_THEME = Theme(
    {
        "rent.ok": "bold green",
        "rent.error": "bold red",
        "rent.warning": "bold yellow",
        "rent.op": "bold cyan",
        "rent.key": "dim",
        "rent.id": "bold blue",
        "rent.money": "magenta",
        "rent.name": "bold",
        "rent.status.live": "green",
        "rent.status.late": "bold red",
        "rent.status.closed": "dim",
        "rent.status.waiting": "yellow",
    }
)

_STATUS_STYLES: dict[str, str] = {
    "ACTIVE": "rent.status.live",
    "CONFIRMED": "rent.status.live",
    "OVERDUE": "rent.status.late",
    "PENDING": "rent.status.waiting",
    "RETURNED": "rent.status.closed",
    "CANCELLED": "rent.status.closed",
    "FULFILLED": "rent.status.closed",
    "EXPIRED": "rent.status.closed",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width (consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=RENTAL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    """Return the Rich style name for a rental or reservation status."""
    return _STATUS_STYLES.get(status, "")

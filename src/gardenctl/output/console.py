"""Rich Console factory and theme for gardenctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract.  In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

GARDEN_THEME = Theme(
    {
        "garden.ok": "bold green",
        "garden.error": "bold red",
        "garden.warning": "bold yellow",
        "garden.op": "bold cyan",
        "garden.key": "dim",
        "garden.id": "bold blue",
        "garden.path": "dim",
        "garden.title": "bold",
        "garden.kind.folder": "yellow",
        "garden.kind.file": "magenta",
        "garden.kind.note": "green",
        "garden.kind.code": "cyan",
        "garden.kind.external": "blue",
    }
)

_KIND_STYLES: dict[str, str] = {
    "folder": "garden.kind.folder",
    "file": "garden.kind.file",
    "note": "garden.kind.note",
    "code": "garden.kind.code",
    "html": "garden.kind.code",
    "external": "garden.kind.external",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=GARDEN_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_kind(kind: str) -> str:
    """Return the Rich style name for a payload kind."""
    return _KIND_STYLES.get(kind, "")

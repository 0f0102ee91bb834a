"""Rich Console factory and theme for entityctl output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

ENTITY_THEME = Theme(
    {
        "ent.ok": "bold green",
        "ent.error": "bold red",
        "ent.warning": "bold yellow",
        "ent.op": "bold cyan",
        "ent.key": "dim",
        "ent.id": "bold blue",
        "ent.name": "bold",
        "ent.field": "magenta",
    }
)

_FIELD_TYPE_STYLES: dict[str, str] = {
    "string": "green",
    "number": "cyan",
    "boolean": "yellow",
    "email": "blue",
    "url": "blue",
    "date": "magenta",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=ENTITY_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_field_type(field_type: str) -> str:
    """Return the Rich style for a field type name."""
    return _FIELD_TYPE_STYLES.get(field_type, "")

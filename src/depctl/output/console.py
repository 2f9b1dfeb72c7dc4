"""Rich Console factory and theme for depctl output.

Consoles render into a StringIO buffer so renderers keep a plain
``-> str`` contract. Rich disables color codes on its own when the output is
not a terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

DEP_THEME = Theme(
    {
        "dep.ok": "bold green",
        "dep.error": "bold red",
        "dep.warning": "bold yellow",
        "dep.op": "bold cyan",
        "dep.key": "dim",
        "dep.name": "bold blue",
        "dep.path": "dim",
        "dep.hint": "italic",
        "dep.status.resolved": "green",
        "dep.status.degraded": "yellow",
        "dep.status.failed": "red",
        "dep.tier.builtin": "magenta",
        "dep.tier.local": "cyan",
        "dep.tier.registry": "blue",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=DEP_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_status(status: str) -> str:
    return f"dep.status.{status}" if status in ("resolved", "degraded", "failed") else ""


def style_for_tier(tier: str) -> str:
    return f"dep.tier.{tier}" if tier in ("builtin", "local", "registry") else ""

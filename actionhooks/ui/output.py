"""Diagnostic rendering for hook runs."""

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .theme import DEFAULT_PALETTE, STAGE_PREFIX, console as default_console


def render_stage(text: str, out: Optional[Console] = None) -> None:
    """Render a stage banner, e.g. ' -----> Running pre_build hook'."""
    palette = DEFAULT_PALETTE
    line = Text()
    line.append(STAGE_PREFIX, style=f"bold {palette.stage}")
    line.append(text, style=palette.text)
    (out or default_console).print(line)


def render_warning(text: str, out: Optional[Console] = None) -> None:
    """Render a non-fatal warning."""
    palette = DEFAULT_PALETTE
    warn = Text()
    warn.append("warn ", style=f"bold {palette.warning}")
    warn.append("| ", style=f"dim {palette.text_muted}")
    warn.append(text, style=palette.warning)
    (out or default_console).print(warn)


def render_error(text: str, out: Optional[Console] = None) -> None:
    """Render an error message."""
    palette = DEFAULT_PALETTE
    err = Text()
    err.append("err ", style=f"bold {palette.error}")
    err.append("| ", style=f"dim {palette.text_muted}")
    err.append(text, style=palette.error)
    (out or default_console).print(err)


def render_hooks_table(rows: list[dict], out: Optional[Console] = None) -> None:
    """Show one row per stage as produced by HookRunner.describe()."""
    palette = DEFAULT_PALETTE
    table = Table(show_header=True, header_style=f"bold {palette.stage}", box=None)
    table.add_column("phase", style=palette.text_dim)
    table.add_column("stage")
    table.add_column("mode")
    table.add_column("state")
    table.add_column("path", style=palette.text_dim)

    for row in rows:
        state = row["state"]
        if state == "ready":
            style = palette.success
        elif state == "not executable":
            style = palette.warning
        else:
            style = palette.text_muted
        mode_style = palette.inline if row["mode"] == "inline_env" else palette.text_dim
        table.add_row(
            row["phase"],
            row["stage"],
            Text(row["mode"], style=mode_style),
            Text(state, style=style),
            row["path"],
        )

    (out or default_console).print(table)

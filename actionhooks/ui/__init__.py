"""Terminal output for build and deploy logs."""

from .theme import DEFAULT_PALETTE, STAGE_PREFIX, console
from .output import render_stage, render_warning, render_error, render_hooks_table

__all__ = [
    "DEFAULT_PALETTE",
    "STAGE_PREFIX",
    "console",
    "render_stage",
    "render_warning",
    "render_error",
    "render_hooks_table",
]

"""Colors and the shared console for build/deploy log output."""

from dataclasses import dataclass
from rich.console import Console


@dataclass(frozen=True)
class ColorPalette:
    """Core UI color palette."""

    text: str = "#b8b8cc"
    text_dim: str = "#4a4a60"
    text_muted: str = "#363648"
    stage: str = "#00d4e5"
    inline: str = "#b44dff"
    success: str = "#34d399"
    warning: str = "#e5c747"
    error: str = "#e55a6e"


DEFAULT_PALETTE = ColorPalette()

# S2I builder log prefix
STAGE_PREFIX = " -----> "

# stderr, unwrapped: lines end up in captured build logs.
console = Console(stderr=True, highlight=False, soft_wrap=True)

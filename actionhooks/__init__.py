"""action-hooks - lifecycle hooks around S2I assemble and run scripts."""

__version__ = "0.1.0"

from .cli import cli
from .config import ConfigManager
from .hooks import (
    EnvironmentSet,
    ExecutionResult,
    HookRunner,
    HookStage,
    Phase,
)

__all__ = [
    "cli",
    "ConfigManager",
    "EnvironmentSet",
    "ExecutionResult",
    "HookRunner",
    "HookStage",
    "Phase",
]

"""Lifecycle hook system for action-hooks."""

from .stages import (
    PHASE_STAGES,
    ExecutionResult,
    HookDefinition,
    HookStage,
    Phase,
    StageMode,
)
from .envfile import EnvironmentSet, evaluate
from .errors import EnvEvalError, HookError, NotExecutableError, TransferFailure
from .loader import load_hooks, resolve_hook
from .runner import HookRunner

__all__ = [
    "PHASE_STAGES",
    "ExecutionResult",
    "HookDefinition",
    "HookStage",
    "Phase",
    "StageMode",
    "EnvironmentSet",
    "evaluate",
    "EnvEvalError",
    "HookError",
    "NotExecutableError",
    "TransferFailure",
    "load_hooks",
    "resolve_hook",
    "HookRunner",
]

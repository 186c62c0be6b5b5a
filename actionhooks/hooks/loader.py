"""Resolve hook definitions from a hook directory."""

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Union

from .stages import HookDefinition, HookStage


_log = logging.getLogger(__name__)


def resolve_hook(hook_dir: Union[str, Path], stage: HookStage) -> HookDefinition:
    """Look up ``<hook_dir>/<stage>`` and record whether it exists and is executable.

    Directories and other non-files at the hook path count as absent.
    """
    path = Path(hook_dir) / stage.value
    exists = path.is_file()
    executable = exists and os.access(path, os.X_OK)
    _log.debug("%s: %s (exists=%s, executable=%s)", stage.value, path, exists, executable)
    return HookDefinition(stage=stage, path=path, exists=exists, executable=executable)


def load_hooks(
    hook_dir: Union[str, Path],
    stages: Iterable[HookStage] = tuple(HookStage),
) -> tuple[HookDefinition, ...]:
    """Resolve every stage in ``stages``, preserving their order."""
    return tuple(resolve_hook(hook_dir, stage) for stage in stages)

"""Scaffolding for hook directories.

Creates the hook directory and writes a template for each requested stage,
leaving existing files alone.
"""

import stat
from collections.abc import Iterable
from pathlib import Path
from typing import Callable, Optional

from .stages import HookStage
from .templates import get_template


DEFAULT_HOOK_DIR = ".s2i/action_hooks"

_EXEC_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def run_init(
    path: Path,
    hook_dir: str = DEFAULT_HOOK_DIR,
    stages: Iterable[HookStage] = tuple(HookStage),
    print_fn: Optional[Callable[[str], None]] = None,
) -> str:
    """Scaffold hook templates under ``path / hook_dir``.

    Args:
        path: Project root directory.
        hook_dir: Hook directory relative to ``path``.
        stages: Stages to write templates for.
        print_fn: Optional callback for progress messages.

    Returns:
        A summary string of what was created/skipped.
    """
    target = (path / hook_dir).resolve()

    created: list[str] = []
    skipped: list[str] = []

    def _log(msg: str) -> None:
        if print_fn:
            print_fn(msg)

    if not target.is_dir():
        target.mkdir(parents=True, exist_ok=True)
        created.append(f"{hook_dir}/")
    else:
        skipped.append(f"{hook_dir}/ (already exists)")

    for stage in stages:
        hook_path = target / stage.value
        if hook_path.exists():
            skipped.append(f"{stage.value} (already exists)")
            _log(f"  skipped: {stage.value} (already exists)")
            continue

        hook_path.write_text(get_template(stage), encoding="utf-8")
        if stage.requires_executable:
            hook_path.chmod(hook_path.stat().st_mode | _EXEC_BITS)
        created.append(stage.value)
        _log(f"  created: {stage.value}")

    lines = [f"Initialized {hook_dir}"]
    if created:
        lines.append(f"  created: {', '.join(created)}")
    if skipped:
        lines.append(f"  skipped: {', '.join(skipped)}")

    return "\n".join(lines)

"""Hook runner for the assemble and run phases.

Wraps the builder's original ``assemble``/``run`` entry points. Stages run in
a fixed order: out-of-process hooks as child processes that get a copy of the
current environment, and inline env hooks evaluated in place. Control then
passes to the original command.
"""

import logging
import os
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Optional, Union

from ..ui.output import render_error, render_stage, render_warning
from . import handoff
from .envfile import EnvironmentSet, evaluate
from .errors import EnvEvalError, NotExecutableError
from .loader import load_hooks
from .stages import (
    PHASE_STAGES,
    ExecutionResult,
    HookDefinition,
    HookStage,
    Phase,
    StageMode,
)


_log = logging.getLogger(__name__)

Command = Union[str, os.PathLike, Sequence[str]]
Transfer = Callable[[Sequence[str], Mapping], object]


def as_argv(command: Command) -> list[str]:
    """A path is a single-element argv; a sequence is used as given."""
    if isinstance(command, (str, os.PathLike)):
        return [os.fspath(command)]
    return [str(arg) for arg in command]


class HookRunner:
    """Execute lifecycle hooks around an original command."""

    def __init__(
        self,
        hook_dir: Union[str, Path],
        *,
        strict: bool = False,
        environ: Optional[Mapping] = None,
        transfer: Optional[Transfer] = None,
    ):
        self.hook_dir = Path(hook_dir)
        self.strict = strict
        self._environ = environ
        self._transfer = transfer or handoff.transfer

    def hooks_for_phase(self, phase: Phase) -> tuple[HookDefinition, ...]:
        """Resolve the phase's hooks from disk, in execution order."""
        return load_hooks(self.hook_dir, PHASE_STAGES[phase])

    def initial_env(self) -> EnvironmentSet:
        return EnvironmentSet.from_environ(self._environ)

    def run_phase(self, phase: Phase, original_command: Command) -> ExecutionResult:
        if phase is Phase.ASSEMBLE:
            return self.run_assemble_phase(original_command)
        return self.run_deploy_phase(original_command)

    def run_assemble_phase(self, original_command: Command) -> ExecutionResult:
        """Run pre_build, build_env and build, then the original assemble.

        Returns the first failing hook's result, or the original command's.
        """
        env, failed = self._run_stages(Phase.ASSEMBLE, self.initial_env())
        if failed is not None:
            return failed

        argv = as_argv(original_command)
        render_stage(f"Running {argv[0]}")
        result = self._spawn(argv, env)
        if not result.success:
            render_error(f"{argv[0]} failed with exit code {result.return_code}")
        return result

    def run_deploy_phase(self, original_command: Command) -> ExecutionResult:
        """Run deploy_env and deploy, then hand the process to the original run.

        With the default transfer this only returns when a hook failed.
        """
        env, failed = self._run_stages(Phase.RUN, self.initial_env())
        if failed is not None:
            return failed

        argv = as_argv(original_command)
        _log.debug("handing off to %s", argv)
        self._transfer(argv, env.to_dict())
        return ExecutionResult(0)

    def evaluate_env(self, phase: Phase = Phase.RUN) -> EnvironmentSet:
        """Apply only the inline env stages of ``phase``. Prints nothing."""
        env = self.initial_env()
        for hook in self.hooks_for_phase(phase):
            if hook.exists and hook.stage.mode is StageMode.INLINE_ENV:
                env = self._apply_env(hook, env)
        return env

    def describe(self) -> list[dict]:
        """Return a summary of all stages for display."""
        return [
            {
                "phase": hook.stage.phase.value,
                "stage": hook.stage.value,
                "mode": hook.stage.mode.value,
                "state": hook.state,
                "path": str(hook.path),
            }
            for phase in Phase
            for hook in self.hooks_for_phase(phase)
        ]

    def _run_stages(
        self, phase: Phase, env: EnvironmentSet,
    ) -> tuple[EnvironmentSet, Optional[ExecutionResult]]:
        for hook in self.hooks_for_phase(phase):
            if not hook.exists:
                _log.debug("%s: no hook, skipping", hook.stage.value)
                continue

            if hook.stage.mode is StageMode.INLINE_ENV:
                env = self._apply_env(hook, env)
                continue

            if not hook.executable:
                if self.strict:
                    raise NotExecutableError(hook.path)
                render_warning(
                    f"{hook.path} is not executable, skipping {hook.stage.value} hook. "
                    f"Check that the executable bit survived the image build."
                )
                continue

            render_stage(f"Running {hook.stage.value} hook")
            result = self._spawn([str(hook.path)], env, stage=hook.stage)
            if not result.success:
                if result.signal:
                    render_error(f"{result.source} hook killed by signal {result.signal}")
                else:
                    render_error(f"{result.source} hook failed with exit code {result.return_code}")
                return env, result

        return env, None

    def _apply_env(self, hook: HookDefinition, env: EnvironmentSet) -> EnvironmentSet:
        # No console output here: deploy_env also runs for attached shells.
        try:
            text = hook.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise EnvEvalError(f"cannot read hook: {e}", source=str(hook.path)) from e

        updated = evaluate(text, env, source=str(hook.path))
        _log.debug("%s: set %s", hook.stage.value, sorted(updated.changes_from(env)))
        return updated

    def _spawn(
        self,
        argv: list[str],
        env: EnvironmentSet,
        stage: Optional[HookStage] = None,
    ) -> ExecutionResult:
        """Run a child to completion with a copy of ``env``. Output is not captured."""
        _log.debug("spawn %s", argv)
        start = time.monotonic()
        try:
            proc = subprocess.run(argv, env=env.to_dict())
        except FileNotFoundError:
            render_error(f"{argv[0]}: not found")
            return ExecutionResult(127, stage=stage, duration=time.monotonic() - start)
        except OSError as e:
            # EACCES, ENOEXEC (no shebang) and friends
            render_error(f"{argv[0]}: {e.strerror or e}")
            return ExecutionResult(126, stage=stage, duration=time.monotonic() - start)

        duration = round(time.monotonic() - start, 3)
        return ExecutionResult.from_returncode(proc.returncode, stage=stage, duration=duration)

"""Lifecycle stages, resolved hook files and execution results."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


class Phase(str, Enum):
    """Points in the image lifecycle at which hooks run."""

    ASSEMBLE = "assemble"
    RUN = "run"


class StageMode(str, Enum):
    """How a stage's hook file is used."""

    INLINE_ENV = "inline_env"
    OUT_OF_PROCESS = "out_of_process"


class HookStage(str, Enum):
    """Hook points. The value doubles as the hook file name."""

    PRE_BUILD = "pre_build"
    BUILD_ENV = "build_env"
    BUILD = "build"
    DEPLOY_ENV = "deploy_env"
    DEPLOY = "deploy"

    @property
    def mode(self) -> StageMode:
        if self in (HookStage.BUILD_ENV, HookStage.DEPLOY_ENV):
            return StageMode.INLINE_ENV
        return StageMode.OUT_OF_PROCESS

    @property
    def requires_executable(self) -> bool:
        return self.mode is StageMode.OUT_OF_PROCESS

    @property
    def phase(self) -> Phase:
        if self in PHASE_STAGES[Phase.ASSEMBLE]:
            return Phase.ASSEMBLE
        return Phase.RUN


# Execution order within each phase.
PHASE_STAGES: dict[Phase, tuple[HookStage, ...]] = {
    Phase.ASSEMBLE: (HookStage.PRE_BUILD, HookStage.BUILD_ENV, HookStage.BUILD),
    Phase.RUN: (HookStage.DEPLOY_ENV, HookStage.DEPLOY),
}


@dataclass(frozen=True)
class HookDefinition:
    """A stage's hook file as found on disk."""

    stage: HookStage
    path: Path
    exists: bool = False
    executable: bool = False

    @property
    def runnable(self) -> bool:
        """Present and, for out-of-process stages, executable."""
        if not self.exists:
            return False
        return self.executable or not self.stage.requires_executable

    @property
    def state(self) -> str:
        if not self.exists:
            return "absent"
        if not self.runnable:
            return "not executable"
        return "ready"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a hook or of the original command.

    ``stage`` is None when the result belongs to the original command. A child
    killed by signal N reports ``return_code`` 128+N, as a shell would.
    """

    return_code: int
    signal: Optional[int] = None
    stage: Optional[HookStage] = None
    duration: float = field(default=0.0, compare=False)

    @property
    def success(self) -> bool:
        return self.return_code == 0

    @property
    def source(self) -> str:
        return self.stage.value if self.stage else "original command"

    @classmethod
    def from_returncode(
        cls,
        returncode: int,
        stage: Optional[HookStage] = None,
        duration: float = 0.0,
    ) -> "ExecutionResult":
        """Build from a subprocess returncode (negative means killed by signal)."""
        if returncode < 0:
            return cls(128 - returncode, signal=-returncode, stage=stage, duration=duration)
        return cls(returncode, stage=stage, duration=duration)

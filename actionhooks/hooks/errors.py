"""Errors raised while running lifecycle hooks.

Non-zero exits from hooks and from the original command are not exceptions;
they come back as failed ``ExecutionResult`` values. The exceptions here cover
conditions where there is no process status to report.
"""

from typing import Optional


class HookError(Exception):
    """Base class for fatal hook errors. ``exit_code`` is what the CLI exits with."""

    exit_code = 1


class EnvEvalError(HookError):
    """An inline env file could not be evaluated as assignment statements."""

    def __init__(self, message: str, line: Optional[int] = None, source: str = ""):
        self.message = message
        self.line = line
        self.source = source
        location = source or "<env>"
        if line is not None:
            location = f"{location}:{line}"
        super().__init__(f"{location}: {message}")


class NotExecutableError(HookError):
    """An out-of-process hook exists but lacks the executable bit."""

    exit_code = 126

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"Hook {path} is not executable. "
            f"Run 'chmod +x {path}' (some image build layers drop the executable bit)."
        )


class TransferFailure(HookError):
    """The run command could not be located or exec'd."""

    def __init__(self, command: str, reason: str, exit_code: int = 127):
        self.command = command
        self.reason = reason
        self.exit_code = exit_code
        super().__init__(f"Cannot run {command}: {reason}")

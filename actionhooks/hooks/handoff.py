"""Hand the process over to the original run command.

``transfer`` replaces the current process image with ``os.execve``, so the
original command keeps our PID and receives container signals directly.
``spawn_and_forward`` is the fallback where that is not possible: the command
runs as a child, signals are relayed to it and we exit with its status.
"""

import logging
import os
import shutil
import signal
import subprocess
import sys
from collections.abc import Mapping, Sequence
from typing import NoReturn

from .errors import TransferFailure


_log = logging.getLogger(__name__)

FORWARDED_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGTERM", "SIGINT", "SIGHUP", "SIGQUIT", "SIGUSR1", "SIGUSR2")
    if hasattr(signal, name)
)

# Python ignores these at startup; an ignored disposition survives exec.
_RESTORED_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGPIPE", "SIGXFSZ")
    if hasattr(signal, name)
)

# Handlers for these cannot be changed.
_FIXED_DISPOSITION = frozenset(
    getattr(signal, name)
    for name in ("SIGKILL", "SIGSTOP")
    if hasattr(signal, name)
)


def resolve_command(argv: Sequence[str], env: Mapping) -> str:
    """Locate ``argv[0]`` using the PATH of ``env``.

    Raises TransferFailure (127 when missing, 126 when not executable).
    """
    if not argv:
        raise TransferFailure("<empty>", "no command given")

    command = argv[0]
    if os.sep in command:
        if not os.path.isfile(command):
            raise TransferFailure(command, "no such file", exit_code=127)
        if not os.access(command, os.X_OK):
            raise TransferFailure(command, "permission denied (not executable)", exit_code=126)
        return command

    found = shutil.which(command, path=env.get("PATH", os.defpath))
    if found is None:
        raise TransferFailure(command, "command not found in PATH", exit_code=127)
    return found


def transfer(argv: Sequence[str], env: Mapping) -> NoReturn:
    """Replace this process with ``argv``. Never returns on success."""
    executable = resolve_command(argv, env)
    _log.debug("exec %s %s", executable, list(argv[1:]))

    sys.stdout.flush()
    sys.stderr.flush()
    for signum in _RESTORED_SIGNALS:
        signal.signal(signum, signal.SIG_DFL)

    try:
        os.execve(executable, list(argv), dict(env))
    except OSError as e:
        # execve only returns on failure, so the process is still ours.
        raise TransferFailure(argv[0], e.strerror or str(e), exit_code=126) from e


def spawn_and_forward(argv: Sequence[str], env: Mapping) -> NoReturn:
    """Run ``argv`` as a child, relay signals to it and exit with its status."""
    executable = resolve_command(argv, env)
    _log.debug("spawn %s %s (forwarding signals)", executable, list(argv[1:]))

    sys.stdout.flush()
    sys.stderr.flush()

    # Signals that land before the child exists are replayed once it is up.
    pending: list[int] = []
    child: list[subprocess.Popen] = []

    def _relay(signum, _frame):
        if child:
            child[0].send_signal(signum)
        else:
            pending.append(signum)

    for signum in FORWARDED_SIGNALS:
        signal.signal(signum, _relay)

    try:
        proc = subprocess.Popen([executable, *argv[1:]], env=dict(env))
    except OSError as e:
        raise TransferFailure(argv[0], e.strerror or str(e), exit_code=126) from e

    child.append(proc)
    for signum in pending:
        proc.send_signal(signum)

    returncode = proc.wait()
    if returncode < 0:
        signum = -returncode
        if signum not in _FIXED_DISPOSITION:
            signal.signal(signum, signal.SIG_DFL)
        os.kill(os.getpid(), signum)
        returncode = 128 + signum
    sys.exit(returncode)


HANDOFF_MODES = {
    "exec": transfer,
    "forward": spawn_and_forward,
}


def default_mode() -> str:
    return "exec" if os.name == "posix" else "forward"

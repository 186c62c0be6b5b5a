"""Shell profile integration for attached sessions.

Images commonly point ``ENV``/``BASH_ENV`` at a file that every shell sources
on startup. Hooking ``deploy_env`` into that file gives ``oc rsh`` or
``docker exec`` sessions the same environment as the supervised run command.
"""

import os
import shlex
from collections.abc import Mapping
from pathlib import Path
from typing import Optional, Union


MARKER_BEGIN = "# >>> action-hooks deploy_env >>>"
MARKER_END = "# <<< action-hooks deploy_env <<<"

PROFILE_VARS = ("ENV", "BASH_ENV")


def profile_from_environ(environ: Optional[Mapping] = None) -> Optional[Path]:
    """The environment-initialization file named by ENV or BASH_ENV, if any."""
    environ = os.environ if environ is None else environ
    for name in PROFILE_VARS:
        value = environ.get(name)
        if value:
            return Path(value)
    return None


def profile_snippet(hook_dir: Union[str, Path], command: str = "action-hooks") -> str:
    """The marked block that evaluates deploy_env in a sourcing shell."""
    quoted = shlex.quote(str(hook_dir))
    return (
        f"{MARKER_BEGIN}\n"
        f"if [ -f {quoted}/deploy_env ]; then\n"
        f"    eval \"$({command} shell-env --hook-dir {quoted})\"\n"
        f"fi\n"
        f"{MARKER_END}\n"
    )


def is_installed(profile_path: Union[str, Path]) -> bool:
    path = Path(profile_path)
    if not path.is_file():
        return False
    return MARKER_BEGIN in path.read_text(encoding="utf-8")


def install_profile(
    profile_path: Union[str, Path],
    hook_dir: Union[str, Path],
    command: str = "action-hooks",
) -> bool:
    """Append the deploy_env block to ``profile_path``.

    Returns False without touching the file when the block is already there.
    """
    path = Path(profile_path)
    if is_installed(path):
        return False

    existing = path.read_text(encoding="utf-8") if path.is_file() else ""
    if existing and not existing.endswith("\n"):
        existing += "\n"

    path.parent.mkdir(parents=True, exist_ok=True)
    snippet = profile_snippet(Path(hook_dir).resolve(), command)
    path.write_text(existing + snippet, encoding="utf-8")
    return True


def export_lines(changes: Mapping) -> list[str]:
    """``export NAME='value'`` lines, safe to eval in a POSIX shell."""
    return [
        f"export {name}={shlex.quote(value)}"
        for name, value in sorted(changes.items())
    ]

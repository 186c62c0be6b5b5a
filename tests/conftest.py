"""Shared fixtures: a hook directory and helpers that write hook files into it."""

import os

import pytest


def write_hook(hook_dir, name, body, executable=True, shebang=True):
    """Write ``hook_dir/name``. Scripts get a /bin/sh shebang unless told otherwise."""
    path = hook_dir / name
    content = f"#!/bin/sh\n{body}\n" if shebang else body
    path.write_text(content)
    path.chmod(0o755 if executable else 0o644)
    return path


@pytest.fixture
def hook_dir(tmp_path):
    d = tmp_path / "action_hooks"
    d.mkdir()
    return d


@pytest.fixture
def out_dir(tmp_path):
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def base_env(out_dir):
    """A minimal inherited environment; hooks write their observations to $OUT."""
    return {"PATH": os.environ.get("PATH", os.defpath), "OUT": str(out_dir)}


@pytest.fixture
def original(tmp_path):
    """An original command that records it ran, plus the FOO and X it saw."""
    return write_hook(
        tmp_path,
        "original",
        'echo "ran FOO=$FOO X=$X" > "$OUT/original"\nexit "${ORIGINAL_EXIT:-0}"',
    )

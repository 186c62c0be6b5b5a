"""Tests for HookRunner: stage order, environment flow and failure handling."""

import pytest

from actionhooks.hooks.errors import EnvEvalError, NotExecutableError
from actionhooks.hooks.runner import HookRunner, as_argv
from actionhooks.hooks.stages import ExecutionResult, HookStage, Phase

from .conftest import write_hook


class RecordingTransfer:
    """Stands in for exec so the test process survives the run phase."""

    def __init__(self):
        self.calls = []

    def __call__(self, argv, env):
        self.calls.append((list(argv), dict(env)))


def _read(path):
    return path.read_text().strip() if path.exists() else None


class TestAsArgv:
    def test_path_is_single_argument(self, tmp_path):
        assert as_argv(tmp_path / "run") == [str(tmp_path / "run")]

    def test_string_is_not_split(self):
        assert as_argv("/opt/my app/run") == ["/opt/my app/run"]

    def test_sequence_kept(self):
        assert as_argv(["python", "-m", "app"]) == ["python", "-m", "app"]


class TestAssemblePhase:
    """Tests for run_assemble_phase()."""

    def test_no_hooks_runs_original(self, hook_dir, base_env, out_dir, original):
        runner = HookRunner(hook_dir, environ=base_env)
        result = runner.run_assemble_phase(original)
        assert result == ExecutionResult(0)
        assert _read(out_dir / "original") == "ran FOO= X="

    def test_missing_hook_dir_is_fine(self, tmp_path, base_env, out_dir, original):
        runner = HookRunner(tmp_path / "does-not-exist", environ=base_env)
        assert runner.run_assemble_phase(original).success
        assert (out_dir / "original").exists()

    def test_original_exit_code_propagates(self, hook_dir, base_env, original):
        runner = HookRunner(hook_dir, environ={**base_env, "ORIGINAL_EXIT": "5"})
        result = runner.run_assemble_phase(original)
        assert result.return_code == 5
        assert result.stage is None

    def test_stage_order(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "pre_build", 'echo pre_build >> "$OUT/order"')
        write_hook(hook_dir, "build_env", "STEP=env", shebang=False)
        write_hook(hook_dir, "build", 'echo "build $STEP" >> "$OUT/order"')
        runner = HookRunner(hook_dir, environ=base_env)

        assert runner.run_assemble_phase(original).success
        assert _read(out_dir / "order").splitlines() == ["pre_build", "build env"]
        assert (out_dir / "original").exists()

    def test_build_env_reaches_build_and_original(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "build_env", "FOO=bar", shebang=False)
        write_hook(hook_dir, "build", 'echo "$FOO" > "$OUT/build"')
        runner = HookRunner(hook_dir, environ=base_env)

        assert runner.run_assemble_phase(original).success
        assert _read(out_dir / "build") == "bar"
        assert _read(out_dir / "original") == "ran FOO=bar X="

    def test_pre_build_cannot_change_env_for_later_stages(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "pre_build", "export FOO=leaked")
        write_hook(hook_dir, "build", 'echo "[$FOO]" > "$OUT/build"')
        runner = HookRunner(hook_dir, environ=base_env)

        assert runner.run_assemble_phase(original).success
        assert _read(out_dir / "build") == "[]"

    def test_pre_build_failure_is_fail_fast(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "pre_build", "exit 3")
        write_hook(hook_dir, "build", 'touch "$OUT/build"')
        runner = HookRunner(hook_dir, environ=base_env)

        result = runner.run_assemble_phase(original)
        assert result.return_code == 3
        assert result.stage is HookStage.PRE_BUILD
        assert not (out_dir / "build").exists()
        assert not (out_dir / "original").exists()

    def test_build_failure_skips_original(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "build", "exit 9")
        runner = HookRunner(hook_dir, environ=base_env)

        result = runner.run_assemble_phase(original)
        assert result.return_code == 9
        assert result.stage is HookStage.BUILD
        assert not (out_dir / "original").exists()

    def test_failure_names_the_stage(self, hook_dir, base_env, original, capsys):
        write_hook(hook_dir, "pre_build", "exit 3")
        runner = HookRunner(hook_dir, environ=base_env)

        runner.run_assemble_phase(original)
        assert "pre_build hook failed with exit code 3" in capsys.readouterr().err

    def test_hook_killed_by_signal(self, hook_dir, base_env, original):
        write_hook(hook_dir, "build", "kill -TERM $$")
        runner = HookRunner(hook_dir, environ=base_env)

        result = runner.run_assemble_phase(original)
        assert result.signal == 15
        assert result.return_code == 143

    def test_malformed_build_env_is_fatal(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "build_env", "FOO=bar\necho nope\n", shebang=False)
        write_hook(hook_dir, "build", 'touch "$OUT/build"')
        runner = HookRunner(hook_dir, environ=base_env)

        with pytest.raises(EnvEvalError) as excinfo:
            runner.run_assemble_phase(original)
        assert excinfo.value.line == 2
        assert not (out_dir / "build").exists()
        assert not (out_dir / "original").exists()

    def test_non_executable_build_warns_and_skips(self, hook_dir, base_env, out_dir, original, capsys):
        write_hook(hook_dir, "build", 'touch "$OUT/build"', executable=False)
        runner = HookRunner(hook_dir, environ=base_env)

        result = runner.run_assemble_phase(original)
        assert result.success
        assert not (out_dir / "build").exists()
        assert (out_dir / "original").exists()
        assert "not executable" in capsys.readouterr().err

    def test_non_executable_build_aborts_in_strict_mode(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "build", 'touch "$OUT/build"', executable=False)
        runner = HookRunner(hook_dir, strict=True, environ=base_env)

        with pytest.raises(NotExecutableError) as excinfo:
            runner.run_assemble_phase(original)
        assert excinfo.value.exit_code == 126
        assert not (out_dir / "original").exists()

    def test_missing_original_command(self, hook_dir, base_env, tmp_path):
        runner = HookRunner(hook_dir, environ=base_env)
        result = runner.run_assemble_phase(tmp_path / "no-such-assemble")
        assert result.return_code == 127

    def test_repeat_run_is_idempotent(self, hook_dir, base_env, original):
        write_hook(hook_dir, "pre_build", "true")
        write_hook(hook_dir, "build_env", "FOO=${FOO:-bar}", shebang=False)
        write_hook(hook_dir, "build", "true")
        runner = HookRunner(hook_dir, environ=base_env)

        first = runner.run_assemble_phase(original)
        second = runner.run_assemble_phase(original)
        assert first == second

    def test_inherited_environ_not_mutated(self, hook_dir, base_env, original):
        write_hook(hook_dir, "build_env", "FOO=bar", shebang=False)
        snapshot = dict(base_env)
        HookRunner(hook_dir, environ=base_env).run_assemble_phase(original)
        assert base_env == snapshot


class TestDeployPhase:
    """Tests for run_deploy_phase() with a recording transfer."""

    def test_no_hooks_transfers_inherited_env(self, hook_dir, base_env, original):
        transfer = RecordingTransfer()
        runner = HookRunner(hook_dir, environ=base_env, transfer=transfer)

        runner.run_deploy_phase(original)
        assert transfer.calls == [([str(original)], base_env)]

    def test_default_substitution_reaches_deploy_and_run(self, hook_dir, base_env, out_dir, original):
        write_hook(hook_dir, "deploy_env", "X=${X:-1}", shebang=False)
        write_hook(hook_dir, "deploy", 'echo "$X" > "$OUT/deploy"')
        transfer = RecordingTransfer()
        runner = HookRunner(hook_dir, environ=base_env, transfer=transfer)

        runner.run_deploy_phase(original)
        assert _read(out_dir / "deploy") == "1"
        assert transfer.calls[0][1]["X"] == "1"

    def test_existing_value_wins_over_default(self, hook_dir, base_env, original):
        write_hook(hook_dir, "deploy_env", "X=${X:-1}", shebang=False)
        transfer = RecordingTransfer()
        runner = HookRunner(hook_dir, environ={**base_env, "X": "9"}, transfer=transfer)

        runner.run_deploy_phase(original)
        assert transfer.calls[0][1]["X"] == "9"

    def test_deploy_failure_prevents_transfer(self, hook_dir, base_env, original):
        write_hook(hook_dir, "deploy", "exit 4")
        transfer = RecordingTransfer()
        runner = HookRunner(hook_dir, environ=base_env, transfer=transfer)

        result = runner.run_deploy_phase(original)
        assert result.return_code == 4
        assert result.stage is HookStage.DEPLOY
        assert transfer.calls == []

    def test_deploy_env_prints_nothing(self, hook_dir, base_env, original, capfd):
        write_hook(hook_dir, "deploy_env", "# quiet\nX=${X:-1}\n", shebang=False)
        runner = HookRunner(hook_dir, environ=base_env, transfer=RecordingTransfer())

        runner.run_deploy_phase(original)
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_original_argv_passed_through(self, hook_dir, base_env):
        transfer = RecordingTransfer()
        runner = HookRunner(hook_dir, environ=base_env, transfer=transfer)

        runner.run_deploy_phase(["gunicorn", "app:wsgi", "--workers", "2"])
        assert transfer.calls[0][0] == ["gunicorn", "app:wsgi", "--workers", "2"]

    def test_run_phase_dispatch(self, hook_dir, base_env, original):
        transfer = RecordingTransfer()
        runner = HookRunner(hook_dir, environ=base_env, transfer=transfer)
        runner.run_phase(Phase.RUN, original)
        assert len(transfer.calls) == 1


class TestEvaluateEnv:
    def test_only_inline_stages_run(self, hook_dir, base_env, out_dir):
        write_hook(hook_dir, "deploy_env", "A=1", shebang=False)
        write_hook(hook_dir, "deploy", 'touch "$OUT/deploy"')
        runner = HookRunner(hook_dir, environ=base_env)

        env = runner.evaluate_env(Phase.RUN)
        assert env["A"] == "1"
        assert not (out_dir / "deploy").exists()

    def test_assemble_phase_env(self, hook_dir, base_env):
        write_hook(hook_dir, "build_env", "B=2", shebang=False)
        runner = HookRunner(hook_dir, environ=base_env)
        assert runner.evaluate_env(Phase.ASSEMBLE)["B"] == "2"


class TestDescribe:
    def test_describe_lists_every_stage(self, hook_dir):
        write_hook(hook_dir, "build", "true")
        write_hook(hook_dir, "deploy", "true", executable=False)
        rows = HookRunner(hook_dir).describe()

        assert [r["stage"] for r in rows] == [
            "pre_build", "build_env", "build", "deploy_env", "deploy",
        ]
        states = {r["stage"]: r["state"] for r in rows}
        assert states["build"] == "ready"
        assert states["deploy"] == "not executable"
        assert states["pre_build"] == "absent"
        assert rows[3]["mode"] == "inline_env"
        assert rows[3]["phase"] == "run"

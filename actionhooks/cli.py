"""action-hooks CLI - wrap S2I assemble/run scripts with lifecycle hooks."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import ConfigManager
from .hooks import HookError, HookRunner, Phase
from .hooks.handoff import HANDOFF_MODES
from .hooks.init import run_init
from .hooks.profile import export_lines, install_profile
from .ui import DEFAULT_PALETTE, console, render_error, render_hooks_table, render_stage


def _get_config(ctx: click.Context) -> ConfigManager:
    return ConfigManager(ctx.obj.get("config_path"))


def _build_runner(
    config: ConfigManager,
    hook_dir: Optional[str],
    strict: Optional[bool] = None,
    handoff: Optional[str] = None,
) -> HookRunner:
    """Build a runner, letting CLI options override the configuration."""
    mode = handoff or config.get_handoff_mode()
    return HookRunner(
        hook_dir or config.get_hook_dir(),
        strict=config.is_strict() if strict is None else strict,
        transfer=HANDOFF_MODES[mode],
    )


def _original_command(config: ConfigManager, phase: Phase, original: tuple) -> list:
    if original:
        return list(original)
    return [str(config.get_original_command(phase.value))]


hook_dir_option = click.option(
    "--hook-dir",
    type=click.Path(file_okay=False),
    help="Directory holding the hook files (default: .s2i/action_hooks)",
)
strict_option = click.option(
    "--strict/--no-strict",
    default=None,
    help="Treat a non-executable hook as a fatal error",
)


# CLI Commands
@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Log hook resolution and commands")
@click.pass_context
def cli(ctx, config_path, verbose):
    """ACTION-HOOKS - lifecycle hooks around S2I assemble and run.

    Runs pre_build, build_env and build before the original assemble script,
    and deploy_env and deploy before handing the container to the original
    run script.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


@cli.command(context_settings={"ignore_unknown_options": True})
@hook_dir_option
@strict_option
@click.argument("original", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def assemble(ctx, hook_dir, strict, original):
    """Run the assemble phase, then the original assemble script.

    ORIGINAL defaults to $STI_SCRIPTS_PATH/assemble.
    """
    try:
        config = _get_config(ctx)
        runner = _build_runner(config, hook_dir, strict)
        result = runner.run_assemble_phase(_original_command(config, Phase.ASSEMBLE, original))
    except HookError as e:
        render_error(str(e))
        sys.exit(e.exit_code)
    sys.exit(result.return_code)


@cli.command(context_settings={"ignore_unknown_options": True})
@hook_dir_option
@strict_option
@click.option(
    "--handoff",
    type=click.Choice(sorted(HANDOFF_MODES)),
    help="exec replaces this process; forward supervises a child",
)
@click.argument("original", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, hook_dir, strict, handoff, original):
    """Run the deploy phase, then become the original run script.

    ORIGINAL defaults to $STI_SCRIPTS_PATH/run.
    """
    try:
        config = _get_config(ctx)
        runner = _build_runner(config, hook_dir, strict, handoff)
        result = runner.run_deploy_phase(_original_command(config, Phase.RUN, original))
    except HookError as e:
        render_error(str(e))
        sys.exit(e.exit_code)
    sys.exit(result.return_code)


@cli.command(name="shell-env")
@hook_dir_option
@click.pass_context
def shell_env(ctx, hook_dir):
    """Print export statements for the variables deploy_env sets.

    Meant for eval in a shell profile; prints nothing else, even on error.
    """
    try:
        config = _get_config(ctx)
        runner = HookRunner(hook_dir or config.get_hook_dir())
        env = runner.evaluate_env(Phase.RUN)
    except HookError as e:
        sys.exit(e.exit_code)

    for line in export_lines(env.changes_from(runner.initial_env())):
        click.echo(line)


@cli.command()
@hook_dir_option
@click.pass_context
def status(ctx, hook_dir):
    """Show which hooks are present and runnable."""
    try:
        config = _get_config(ctx)
        runner = HookRunner(hook_dir or config.get_hook_dir())
    except HookError as e:
        render_error(str(e))
        sys.exit(e.exit_code)

    console.print(f"Hook directory: {runner.hook_dir}")
    console.print(f"Strict mode: {config.is_strict()}")
    render_hooks_table(runner.describe())


@cli.command(name="install-profile")
@hook_dir_option
@click.option(
    "--profile", "profile_path",
    type=click.Path(dir_okay=False),
    help="Shell init file to extend (default: $ENV or $BASH_ENV)",
)
@click.pass_context
def install_profile_cmd(ctx, hook_dir, profile_path):
    """Make attached shells evaluate deploy_env like the run phase does."""
    try:
        config = _get_config(ctx)
    except HookError as e:
        render_error(str(e))
        sys.exit(e.exit_code)

    target = Path(profile_path) if profile_path else config.get_shell_profile()
    if target is None:
        raise click.ClickException("No shell profile found. Pass --profile or set ENV/BASH_ENV.")

    if install_profile(target, hook_dir or config.get_hook_dir()):
        render_stage(f"Added deploy_env to {target}")
    else:
        render_stage(f"{target} already evaluates deploy_env")


@cli.command(name="init")
@hook_dir_option
@click.option("--config-file", is_flag=True, help="Also write a default config file")
@click.pass_context
def init_hooks(ctx, hook_dir, config_file):
    """Scaffold template hooks in the hook directory."""
    try:
        config = _get_config(ctx)
    except HookError as e:
        render_error(str(e))
        sys.exit(e.exit_code)

    target = hook_dir or str(config.get_hook_dir())
    summary = run_init(
        Path(".").resolve(),
        target,
        print_fn=lambda msg: console.print(msg, style="dim"),
    )
    console.print(summary, style=f"bold {DEFAULT_PALETTE.stage}")

    if config_file:
        if config.create_default_config():
            console.print(f"  created: {config.config_path}", style="dim")
        else:
            console.print(f"  skipped: {config.config_path} (already exists)", style="dim")


def main():
    cli(prog_name="action-hooks")


if __name__ == "__main__":
    main()

"""Configuration management for action-hooks."""

import os
from pathlib import Path
from typing import Optional, Dict, Any
import yaml

from .hooks.errors import HookError
from .hooks.handoff import HANDOFF_MODES, default_mode
from .hooks.init import DEFAULT_HOOK_DIR
from .hooks.profile import profile_from_environ


DEFAULT_CONFIG_PATH = ".s2i/action_hooks.yaml"
DEFAULT_SCRIPTS_PATH = "/usr/libexec/s2i"

# Set by the builder image; the legacy STI_ name is still the common one.
SCRIPTS_PATH_VARS = ("STI_SCRIPTS_PATH", "S2I_SCRIPTS_PATH")

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(HookError):
    """The configuration file is unreadable or holds an invalid value."""


class ConfigManager:
    """Manage action-hooks configuration from YAML and the environment.

    Precedence, lowest first: built-in defaults, the YAML file, environment
    variables. CLI options are applied on top by the caller.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        self.environ = os.environ if environ is None else environ
        self.config_path = Path(
            config_path or self.environ.get("ACTION_HOOKS_CONFIG") or DEFAULT_CONFIG_PATH
        ).expanduser()
        self.data = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file, or nothing if there is none."""
        if not self.config_path.is_file():
            return {}
        return self._read_yaml()

    def _read_yaml(self) -> Dict[str, Any]:
        """Read and parse YAML file."""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Error reading config {self.config_path}: {e}") from e
        if content is None:
            return {}
        if not isinstance(content, dict):
            raise ConfigError(f"Config {self.config_path} must be a mapping")
        return content

    @staticmethod
    def default_config() -> Dict[str, Any]:
        return {
            "hook_dir": DEFAULT_HOOK_DIR,
            "strict": False,
            "scripts_path": "${STI_SCRIPTS_PATH}",
            "handoff": default_mode(),
            "shell_profile": "${ENV}",
        }

    def create_default_config(self) -> bool:
        """Write the default configuration file. False if one already exists."""
        if self.config_path.exists():
            return False
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.data = self.default_config()
        self.save()
        return True

    def _resolve_env_var(self, value: Any) -> Any:
        """Resolve environment variable references like ${VAR_NAME}."""
        if not isinstance(value, str):
            return value
        if not value.startswith("${") or not value.endswith("}"):
            return value

        var_name = value[2:-1]
        return self.environ.get(var_name, "")

    def _get(self, key: str) -> Any:
        return self._resolve_env_var(self.data.get(key))

    def get_hook_dir(self) -> Path:
        """Directory holding the hook files."""
        value = self.environ.get("ACTION_HOOKS_DIR") or self._get("hook_dir") or DEFAULT_HOOK_DIR
        return Path(value).expanduser()

    def is_strict(self) -> bool:
        """Whether a non-executable hook aborts the phase instead of warning."""
        env_value = self.environ.get("ACTION_HOOKS_STRICT")
        if env_value is not None and env_value != "":
            return env_value.strip().lower() in _TRUTHY
        value = self._get("strict")
        if isinstance(value, str):
            return value.strip().lower() in _TRUTHY
        return bool(value)

    def get_scripts_path(self) -> Path:
        """Where the builder keeps its original assemble and run scripts."""
        value = self._get("scripts_path")
        if not value:
            for name in SCRIPTS_PATH_VARS:
                value = self.environ.get(name)
                if value:
                    break
        return Path(value or DEFAULT_SCRIPTS_PATH)

    def get_original_command(self, phase: str) -> Path:
        """Path of the builder's original script for ``phase`` (assemble or run)."""
        return self.get_scripts_path() / phase

    def get_handoff_mode(self) -> str:
        mode = self._get("handoff") or default_mode()
        if mode not in HANDOFF_MODES:
            raise ConfigError(
                f"Invalid handoff mode '{mode}'. Available: {sorted(HANDOFF_MODES)}"
            )
        return mode

    def get_shell_profile(self) -> Optional[Path]:
        """The environment-initialization file sourced by attached shells."""
        value = self._get("shell_profile")
        if value:
            return Path(value).expanduser()
        return profile_from_environ(self.environ)

    def save(self) -> None:
        """Save configuration to file."""
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.data, f, default_flow_style=False, sort_keys=False)

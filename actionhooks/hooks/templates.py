"""Template hook files for ``action-hooks init``."""

from .stages import HookStage


_SCRIPT_HEADER = "#!/bin/bash\n\nset -eo pipefail\n"

# -- Templates ----------------------------------------------------------------

_TEMPLATES: dict[HookStage, str] = {
    HookStage.PRE_BUILD: (
        _SCRIPT_HEADER
        + "\n"
        "# 'pre_build' runs before the original 'assemble' script. It must be\n"
        "# executable. Use it to prepare the source tree before dependencies\n"
        "# are installed.\n"
        "\n"
        "echo \" -----> Running pre_build in $(pwd)\"\n"
    ),
    HookStage.BUILD_ENV: (
        "# 'build_env' is read by action-hooks, not by a shell. Only\n"
        "# assignments are allowed; every variable is exported for the rest\n"
        "# of the build.\n"
        "#\n"
        "# PIP_NO_CACHE_DIR=1\n"
        "# APP_CONFIG=${APP_CONFIG:-production}\n"
    ),
    HookStage.BUILD: (
        _SCRIPT_HEADER
        + "\n"
        "# 'build' runs once the environment from 'build_env' is in place. It\n"
        "# must be executable. Use it for extra build steps or to set up data\n"
        "# required by the application.\n"
        "\n"
        "echo \" -----> Environment variables used by the build.\"\n"
        "\n"
        "env\n"
        "\n"
        "echo \" -----> Current working directory.\"\n"
        "\n"
        "pwd\n"
        "\n"
        "echo \" -----> Contents of the current working directory.\"\n"
        "\n"
        "ls -R .\n"
    ),
    HookStage.DEPLOY_ENV: (
        "# 'deploy_env' is read by action-hooks before the application starts\n"
        "# and by attached shells. Only assignments are allowed, and nothing\n"
        "# here may print output.\n"
        "#\n"
        "# WEB_CONCURRENCY=${WEB_CONCURRENCY:-2}\n"
    ),
    HookStage.DEPLOY: (
        _SCRIPT_HEADER
        + "\n"
        "# 'deploy' runs each time the container starts, just before the\n"
        "# original 'run' script takes over the process. It must be executable.\n"
        "# Database migrations are a typical use.\n"
        "\n"
        "echo \" -----> Running deploy\"\n"
    ),
}


def get_template(stage: HookStage) -> str:
    """Return the template content for a stage."""
    return _TEMPLATES[stage]

"""Default configuration values for twig."""

import os
from typing import Any


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary."""
    return {
        # Repository layout
        "default_branch": "master",
        "initial_commit_message": "initial commit",
        # Length of commit ids in log/find/status output; full ids stay the identity
        "commit_id_display_length": 6,
        # Gitignore-style patterns never touched by checkout/reset and never
        # reported as untracked
        "reserved_paths": [".twig/", ".gitignore", "Makefile"],
        # Logging Configuration
        "log_level": "WARNING",
        "log_format": "pretty",
        "log_colors": True,
    }


# Config key -> environment variable consulted when no config file sets the key
ENV_VARS = {
    "default_branch": "TWIG_DEFAULT_BRANCH",
    "initial_commit_message": "TWIG_INITIAL_COMMIT_MESSAGE",
    "commit_id_display_length": "TWIG_COMMIT_ID_DISPLAY_LENGTH",
    "reserved_paths": "TWIG_RESERVED_PATHS",
    "log_level": "TWIG_LOG_LEVEL",
    "log_format": "LOG_FORMAT",
    "log_colors": "LOG_COLORS",
}


def get_env_config() -> dict[str, Any]:
    """Config values taken from the environment, unvalidated.

    ``TWIG_RESERVED_PATHS`` is a comma-separated pattern list.
    """
    config: dict[str, Any] = {}
    for key, env_key in ENV_VARS.items():
        env_val = os.getenv(env_key)
        if not env_val:
            continue
        if key == "reserved_paths":
            config[key] = [part.strip() for part in env_val.split(",") if part.strip()]
        else:
            config[key] = env_val
    return config

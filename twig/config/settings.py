"""Configuration settings for twig.

This module provides a Settings class that wraps the ConfigManager, providing
property-based access to configuration values with environment fallbacks.
"""

from __future__ import annotations

from typing import Any

import pathspec

from twig.config.constants import STATE_DIR_NAME
from twig.config.defaults import get_default_config, get_env_config
from twig.config.manager import ConfigManager
from twig.config.schema import deep_merge, validate_config


class Settings:
    """Repository settings.

    Values come from the ConfigManager when one is attached (config files over
    TWIG_* environment variables over built-in defaults). Without a manager the
    environment and the defaults are used directly.
    """

    def __init__(self, config_manager: ConfigManager | None = None):
        self._config_manager = config_manager
        self._fallback: dict[str, Any] | None = None

    def _get(self, key: str) -> Any:
        """Get config value from manager, fallback to env, then default."""
        if self._config_manager:
            return self._config_manager.get(key, get_default_config()[key])
        if self._fallback is None:
            # Raises ConfigValidationError for malformed environment values
            self._fallback = validate_config(
                deep_merge(get_default_config(), get_env_config())
            )
        return self._fallback[key]

    @property
    def default_branch(self) -> str:
        return self._get("default_branch")

    @property
    def initial_commit_message(self) -> str:
        return self._get("initial_commit_message")

    @property
    def commit_id_display_length(self) -> int:
        return self._get("commit_id_display_length")

    @property
    def reserved_paths(self) -> list[str]:
        patterns = list(self._get("reserved_paths"))
        # The state directory is always reserved, whatever the user configured
        if f"{STATE_DIR_NAME}/" not in patterns:
            patterns.append(f"{STATE_DIR_NAME}/")
        return patterns

    def reserved_spec(self) -> pathspec.PathSpec:
        """Gitignore-style spec matching working-tree paths twig must never touch."""
        return pathspec.GitIgnoreSpec.from_lines(self.reserved_paths)

    # Logging Configuration
    @property
    def log_level(self) -> str:
        return self._get("log_level")

    @property
    def log_format(self) -> str:
        return self._get("log_format")

    @property
    def log_colors(self) -> bool:
        return self._get("log_colors")

"""Configuration manager."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, TypeVar

from twig.config.constants import LOCAL_CONFIG_NAME
from twig.config.defaults import get_default_config, get_env_config
from twig.config.providers import (
    ConfigProvider,
    LayeredConfigProvider,
    LocalFileConfigProvider,
)
from twig.config.schema import deep_merge, validate_config
from twig.utils.logger import get_logger

logger = get_logger("twig.config.manager")

T = TypeVar("T")


class ConfigManager:
    """Holds the validated configuration loaded from a provider."""

    def __init__(self, provider: ConfigProvider):
        self.provider = provider
        self._config: dict[str, Any] = {}
        self._loaded = False

    def initialize(self) -> None:
        """Load and validate configuration from the provider.

        Raises:
            ConfigValidationError: If the merged configuration is invalid.
        """
        self._config = validate_config(self.provider.load())
        self._loaded = True
        logger.debug("Configuration initialized", config_keys=list(self._config))

    @property
    def loaded(self) -> bool:
        return self._loaded

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key."""
        return self._config.get(key, default)

    def get_typed(self, key: str, expected_type: type[T], default: T) -> T:
        """Get a typed configuration value with validation."""
        value = self._config.get(key, default)
        if not isinstance(value, expected_type):
            logger.warning(
                "Config type mismatch, using default",
                key=key,
                expected=expected_type.__name__,
                actual=type(value).__name__,
            )
            return default
        return value

    def get_str(self, key: str, default: str = "") -> str:
        return self.get_typed(key, str, default)

    def get_int(self, key: str, default: int = 0) -> int:
        return self.get_typed(key, int, default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self.get_typed(key, bool, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value and persist it to the writable layer."""
        updated = validate_config({**self._config, key: value})
        self._config = updated

        user_cfg: dict[str, Any] = {}
        primary = self.provider
        if isinstance(primary, LayeredConfigProvider):
            primary = primary.providers[primary.primary_index]
        if isinstance(primary, LocalFileConfigProvider) and primary._user_config:
            user_cfg = dict(primary._user_config)
        user_cfg[key] = updated[key]
        self.provider.save(user_cfg)
        logger.info("Configuration updated", key=key)

    def get_all(self) -> dict[str, Any]:
        """Get the entire configuration dictionary."""
        return self._config.copy()


def global_config_dir() -> Path:
    """Directory holding the user-level config.json."""
    env_dir = os.getenv("TWIG_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".config" / "twig"


def create_config_manager(
    state_dir: Path | None = None,
    *,
    defaults: dict[str, Any] | None = None,
) -> ConfigManager:
    """Create and initialize a config manager.

    Args:
        state_dir: Repository state directory; its config.json overrides the
            global one and receives writes.
        defaults: Default configuration values. When omitted, the built-in
            defaults overlaid with TWIG_* environment variables.
    """
    if defaults is None:
        defaults = deep_merge(get_default_config(), get_env_config())
    global_path = global_config_dir() / "config.json"
    providers: list[ConfigProvider] = [
        LocalFileConfigProvider(global_path, defaults=defaults)
    ]
    if state_dir is not None:
        providers.append(
            LocalFileConfigProvider(state_dir / LOCAL_CONFIG_NAME, defaults={})
        )

    if len(providers) == 1:
        provider: ConfigProvider = providers[0]
    else:
        provider = LayeredConfigProvider(providers, primary_index=len(providers) - 1)

    manager = ConfigManager(provider)
    manager.initialize()
    return manager

"""Configuration module for twig."""

from .defaults import get_default_config
from .manager import ConfigManager, create_config_manager, global_config_dir
from .providers import (
    ConfigProvider,
    LayeredConfigProvider,
    LocalFileConfigProvider,
)
from .schema import ConfigValidationError, TwigConfig, deep_merge, validate_config
from .settings import Settings

__all__ = [
    "Settings",
    "ConfigManager",
    "ConfigValidationError",
    "TwigConfig",
    "create_config_manager",
    "global_config_dir",
    "deep_merge",
    "validate_config",
    "ConfigProvider",
    "LayeredConfigProvider",
    "LocalFileConfigProvider",
    "get_default_config",
]

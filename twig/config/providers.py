"""Configuration providers - abstract and concrete implementations."""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from twig.config.schema import deep_merge
from twig.utils.logger import get_logger

logger = get_logger("twig.config.providers")


class ConfigProvider(ABC):
    """Abstract base class for configuration providers."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load configuration from the provider."""
        pass

    @abstractmethod
    def save(self, config: dict[str, Any]) -> None:
        """Save configuration to the provider."""
        pass


class LocalFileConfigProvider(ConfigProvider):
    """Configuration provider that stores config in a local JSON file."""

    def __init__(
        self,
        config_path: Path,
        defaults: dict[str, Any] | None = None,
        *,
        create_if_missing: bool = False,
    ):
        self.config_path = config_path
        self.defaults = defaults or {}
        self.create_if_missing = create_if_missing
        self._user_config: dict[str, Any] | None = None

    def load(self) -> dict[str, Any]:
        """Load configuration from file, falling back to defaults."""
        if not self.config_path.exists():
            self._user_config = {}
            if self.create_if_missing:
                logger.info(
                    "Config file not found, creating with defaults",
                    path=str(self.config_path),
                )
                self.save({})
            return self.defaults.copy()

        try:
            config = json.loads(self.config_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(
                "Invalid JSON syntax in config file",
                error=str(e),
                line=e.lineno,
                column=e.colno,
                path=str(self.config_path),
            )
            logger.warning("Using defaults", path=str(self.config_path))
            self._user_config = {}
            return self.defaults.copy()
        except OSError as e:
            logger.error(
                "Failed to load config", error=str(e), path=str(self.config_path)
            )
            self._user_config = {}
            return self.defaults.copy()

        if not isinstance(config, dict):
            logger.error(
                "Config file must contain a JSON object", path=str(self.config_path)
            )
            self._user_config = {}
            return self.defaults.copy()

        self._user_config = config.copy()
        logger.debug("Config loaded from file", path=str(self.config_path))
        return deep_merge(self.defaults, config)

    def save(self, config: dict[str, Any]) -> None:
        """Atomically save the user part of the configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.config_path.with_suffix(".tmp")
        content = json.dumps(config, ensure_ascii=False, indent=2)
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(self.config_path)
        self._user_config = config.copy()
        logger.debug("Config saved to file", path=str(self.config_path))


class LayeredConfigProvider(ConfigProvider):
    """Configuration provider that merges multiple config sources.

    Layers are ordered from lowest to highest precedence. Writes go to the
    provider at ``primary_index`` (the repository-local file for twig).
    """

    def __init__(
        self,
        providers: list[ConfigProvider],
        *,
        primary_index: int = 0,
    ):
        if not providers:
            raise ValueError("LayeredConfigProvider requires at least one provider")
        if primary_index < 0 or primary_index >= len(providers):
            raise ValueError("primary_index must point to an existing provider layer")

        self.providers = providers
        self.primary_index = primary_index
        self._layer_configs: list[dict[str, Any]] = [{} for _ in providers]

    def _merge(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for cfg in self._layer_configs:
            merged = deep_merge(merged, cfg)
        return merged

    def load(self) -> dict[str, Any]:
        for idx, provider in enumerate(self.providers):
            self._layer_configs[idx] = provider.load()
        return self._merge()

    def save(self, config: dict[str, Any]) -> None:
        """Persist updates via the primary (writable) provider."""
        primary = self.providers[self.primary_index]
        primary.save(config)
        self._layer_configs[self.primary_index] = primary.load()

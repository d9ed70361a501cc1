"""Configuration loader for YAML files.

Provides dot-notation access into nested YAML settings, section lookup
and layered overrides.

Typical usage example:
    from efis.core.config import ConfigLoader

    config = ConfigLoader.load("config/terrain.yaml")
    horizon = config.get("terrain.horizon_nm", default=30.0)
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or is invalid."""


class ConfigLoader:
    """Nested configuration backed by a dictionary.

    Examples:
        >>> config = ConfigLoader({"terrain": {"buffer_size": 600}})
        >>> config.get("terrain.buffer_size")
        600
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        """Initialize with configuration data.

        Args:
            data: Configuration dictionary.
        """
        self._data = data if data is not None else {}

    @classmethod
    def load(cls, path: str | Path) -> "ConfigLoader":
        """Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file.

        Returns:
            ConfigLoader instance with loaded data.

        Raises:
            ConfigError: If the file is missing, unreadable or not a mapping.
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration root must be a mapping: {path}")

        logger.info("Loaded configuration from: %s", path)
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value using dot notation, e.g. ``"terrain.tile_dir"``.

        Args:
            key: Configuration key.
            default: Value returned when any part of the key is missing.

        Returns:
            Configuration value or default.
        """
        value: Any = self._data

        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set a value using dot notation, creating sections as needed."""
        keys = key.split(".")
        data = self._data

        for k in keys[:-1]:
            if not isinstance(data.get(k), dict):
                data[k] = {}
            data = data[k]

        data[keys[-1]] = value

    def get_section(self, key: str, required: bool = True) -> dict[str, Any]:
        """Get an entire configuration section.

        Args:
            key: Section key (dot notation).
            required: Raise when the section is missing instead of
                returning an empty dict.

        Returns:
            The section dictionary.

        Raises:
            ConfigError: If the section is missing (and required) or is
                not a mapping.
        """
        value = self.get(key)

        if value is None:
            if required:
                raise ConfigError(f"Configuration section not found: {key}")
            return {}

        if not isinstance(value, dict):
            raise ConfigError(f"Configuration key is not a section: {key}")

        return value

    def merge(self, other: "ConfigLoader") -> None:
        """Overlay another configuration on this one (other wins)."""
        self._data = _merge_dicts(self._data, other._data)

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the configuration dictionary."""
        return self._data.copy()


def _merge_dicts(base: dict, override: dict) -> dict:
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_dicts(result[key], value)
        else:
            result[key] = value

    return result

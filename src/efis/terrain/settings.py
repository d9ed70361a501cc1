"""Typed settings for the terrain subsystem.

Built from the ``terrain`` section of the YAML configuration:

    terrain:
      tile_dir: data/terrain
      byte_order: big
      buffer_size: 600
      horizon_nm: 30.0

Typical usage:
    from efis.terrain.settings import TerrainSettings

    settings = TerrainSettings.load("config/terrain.yaml")
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from efis.core.config import ConfigError, ConfigLoader
from efis.terrain.grid import NM_PER_SAMPLE
from efis.terrain.tiles import DEFAULT_EXTENSION, TILE_COLS, TILE_ROWS

logger = logging.getLogger(__name__)

FEET_TO_METERS = 0.3048


@dataclass
class TerrainSettings:
    """Terrain cache configuration.

    Attributes:
        tile_dir: Directory holding the tile files.
        extension: Tile file extension including the dot.
        byte_order: Sample byte order in the tile files ("big" or "little").
        units: Unit of the stored samples ("meters" or "feet").
        tile_cols: Tile width in samples.
        tile_rows: Tile height in samples.
        buffer_size: Side length of the window in samples.
        horizon_nm: Look-ahead distance that must stay inside the window.
        threshold_nm: Reload threshold; None means a quarter of the window
            width in nautical miles (75 nm for 600 samples).
        check_interval_s: Minimum time between reload checks.
        retry_interval_s: Delay before retrying a failed load.
        background: Load on a worker thread instead of the caller's tick.
    """

    tile_dir: str = "data/terrain"
    extension: str = DEFAULT_EXTENSION
    byte_order: str = "big"
    units: str = "meters"
    tile_cols: int = TILE_COLS
    tile_rows: int = TILE_ROWS
    buffer_size: int = 600
    horizon_nm: float = 30.0
    threshold_nm: float | None = None
    check_interval_s: float = 1.0
    retry_interval_s: float = 30.0
    background: bool = True

    def __post_init__(self) -> None:
        """Validate settings."""
        if self.byte_order not in ("big", "little"):
            raise ConfigError(
                f"terrain.byte_order must be 'big' or 'little', got {self.byte_order!r}"
            )
        if self.units not in ("meters", "feet"):
            raise ConfigError(f"terrain.units must be 'meters' or 'feet', got {self.units!r}")
        for name in ("tile_cols", "tile_rows", "buffer_size"):
            if int(getattr(self, name)) <= 0:
                raise ConfigError(f"terrain.{name} must be positive")
        if self.buffer_size % 2:
            raise ConfigError("terrain.buffer_size must be even")
        if self.horizon_nm < 0:
            raise ConfigError("terrain.horizon_nm must not be negative")
        if self.threshold_nm is not None and self.threshold_nm <= 0:
            raise ConfigError("terrain.threshold_nm must be positive")
        if self.check_interval_s < 0 or self.retry_interval_s < 0:
            raise ConfigError("terrain intervals must not be negative")

    @property
    def reload_threshold_nm(self) -> float:
        """Effective reload threshold in nautical miles."""
        if self.threshold_nm is not None:
            return float(self.threshold_nm)
        return self.buffer_size * NM_PER_SAMPLE / 4

    def to_meters(self, value: float) -> float:
        """Convert a stored sample value to meters."""
        if self.units == "feet":
            return value * FEET_TO_METERS
        return float(value)

    @classmethod
    def from_dict(cls, section: dict[str, Any]) -> "TerrainSettings":
        """Build settings from a ``terrain`` section dictionary.

        Unknown keys are logged and ignored.

        Raises:
            ConfigError: If a value is invalid.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(section) - known)
        if unknown:
            logger.warning("Ignoring unknown terrain settings: %s", ", ".join(unknown))

        values = {k: v for k, v in section.items() if k in known}
        try:
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid terrain settings: {e}") from e

    @classmethod
    def from_config(cls, config: ConfigLoader) -> "TerrainSettings":
        """Build settings from a loaded configuration."""
        return cls.from_dict(config.get_section("terrain", required=False))

    @classmethod
    def load(cls, path: str | Path) -> "TerrainSettings":
        """Load settings from a YAML file."""
        return cls.from_config(ConfigLoader.load(path))

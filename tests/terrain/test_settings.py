"""Tests for terrain settings."""

from pathlib import Path

import pytest

from efis.core.config import ConfigError, ConfigLoader
from efis.terrain.settings import TerrainSettings


class TestTerrainSettings:
    """Test TerrainSettings."""

    def test_defaults(self) -> None:
        """Test default values."""
        settings = TerrainSettings()

        assert settings.buffer_size == 600
        assert settings.byte_order == "big"
        assert settings.units == "meters"
        assert settings.tile_cols == 4800
        assert settings.tile_rows == 6000
        assert settings.reload_threshold_nm == 75.0
        assert settings.background

    def test_explicit_threshold(self) -> None:
        """Test that an explicit threshold overrides the derived one."""
        assert TerrainSettings(threshold_nm=90.0).reload_threshold_nm == 90.0
        assert TerrainSettings(buffer_size=400).reload_threshold_nm == 50.0

    def test_to_meters(self) -> None:
        """Test unit conversion."""
        assert TerrainSettings().to_meters(100) == 100.0
        assert TerrainSettings(units="feet").to_meters(1000) == pytest.approx(304.8)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"byte_order": "middle"},
            {"units": "fathoms"},
            {"buffer_size": 0},
            {"buffer_size": 601},
            {"tile_cols": -1},
            {"horizon_nm": -5.0},
            {"threshold_nm": 0.0},
            {"retry_interval_s": -1.0},
        ],
    )
    def test_invalid_values(self, overrides: dict) -> None:
        """Test validation of individual fields."""
        with pytest.raises(ConfigError):
            TerrainSettings(**overrides)

    def test_from_dict(self) -> None:
        """Test building from a section dictionary."""
        settings = TerrainSettings.from_dict(
            {"tile_dir": "/srv/tiles", "buffer_size": 300, "background": False}
        )

        assert settings.tile_dir == "/srv/tiles"
        assert settings.buffer_size == 300
        assert not settings.background

    def test_from_dict_ignores_unknown(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that unknown keys are logged and skipped."""
        settings = TerrainSettings.from_dict({"buffer_size": 200, "colour": "green"})

        assert settings.buffer_size == 200
        assert "colour" in caplog.text

    def test_from_dict_bad_type(self) -> None:
        """Test that uncoercible values raise ConfigError."""
        with pytest.raises(ConfigError):
            TerrainSettings.from_dict({"buffer_size": "large"})

    def test_from_config_without_section(self) -> None:
        """Test that a config without a terrain section gives defaults."""
        settings = TerrainSettings.from_config(ConfigLoader({"logging": {}}))
        assert settings == TerrainSettings()

    def test_load(self, tmp_path: Path) -> None:
        """Test loading from a YAML file."""
        path = tmp_path / "terrain.yaml"
        path.write_text("terrain:\n  byte_order: little\n  horizon_nm: 20.0\n")

        settings = TerrainSettings.load(path)

        assert settings.byte_order == "little"
        assert settings.horizon_nm == 20.0

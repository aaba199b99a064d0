"""Tests for configuration validation and settings."""

import pytest
from pydantic import ValidationError

from realmgen.config import Settings
from realmgen.errors import ConfigurationError
from realmgen.models import MapSize, MapType
from realmgen.types import MapConfig


class TestMapConfig:
    """Tests for MapConfig validation."""

    def test_defaults(self):
        """Defaults should describe a regional island."""
        config = MapConfig()

        assert config.map_type == MapType.ISLAND
        assert (config.width, config.height) == (512, 512)
        assert config.sea_level == 0.35
        assert config.carve_rivers is True

    def test_map_type_from_string(self):
        """Map types should accept their string values."""
        assert MapConfig(map_type="great-lake").map_type == MapType.GREAT_LAKE

    @pytest.mark.parametrize(
        "options",
        [
            {"sea_level": 1.5},
            {"sea_level": -0.1},
            {"roughness": 2.0},
            {"water_coverage": -1.0},
            {"settlement_density": 1.1},
            {"width": 0},
            {"height": -5},
            {"map_type": "volcano"},
            {"river_count": -1},
            {"erosion_iterations": -10},
        ],
    )
    def test_invalid_options_raise(self, options):
        """Out-of-range values should raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            MapConfig.from_options(**options)

    def test_configuration_error_is_value_error(self):
        """Callers catching ValueError should see configuration problems."""
        with pytest.raises(ValueError):
            MapConfig.from_options(sea_level=3.0)

    def test_frozen(self):
        """A config cannot change once built."""
        config = MapConfig()

        with pytest.raises(ValidationError):
            config.sea_level = 0.5

    def test_for_size(self):
        """Size presets should set both dimensions."""
        config = MapConfig.for_size(MapSize.KINGDOM, seed="x")

        assert (config.width, config.height) == (1024, 1024)
        assert config.seed == "x"

    def test_for_size_respects_overrides(self):
        """Explicit dimensions win over the preset."""
        config = MapConfig.for_size("local", width=100)

        assert (config.width, config.height) == (100, 256)

    def test_for_size_unknown(self):
        """Unknown size names should raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            MapConfig.for_size("galactic")

    def test_effective_defaults(self):
        """Derived counts follow the map size unless overridden."""
        config = MapConfig(width=300, height=200)

        assert config.effective_river_count == 6
        assert config.effective_erosion_iterations == 6000
        assert MapConfig(river_count=2).effective_river_count == 2
        assert MapConfig(erosion_iterations=0).effective_erosion_iterations == 0


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Without environment overrides the defaults apply."""
        monkeypatch.delenv("REALMGEN_LOG_LEVEL", raising=False)
        monkeypatch.delenv("REALMGEN_DEFAULT_MAP_TYPE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.log_level == "info"
        assert settings.default_map_type == MapType.ISLAND

    def test_env_overrides(self, monkeypatch):
        """REALMGEN_* variables should override defaults."""
        monkeypatch.setenv("REALMGEN_LOG_LEVEL", "debug")
        monkeypatch.setenv("REALMGEN_DEFAULT_MAP_TYPE", "fjord")
        monkeypatch.setenv("REALMGEN_DEFAULT_MAP_SIZE", "local")

        settings = Settings(_env_file=None)

        assert settings.log_level == "debug"
        assert settings.default_map_type == MapType.FJORD
        assert settings.default_map_size == MapSize.LOCAL

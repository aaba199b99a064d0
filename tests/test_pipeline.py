"""Tests for the end-to-end generation pipeline."""

import numpy as np
import pytest

from realmgen.errors import ConfigurationError
from realmgen.main import main
from realmgen.models import MAP_SIZE_DIMENSIONS, Biome, GenerationPhase, MapSize, MapType, SettlementSize
from realmgen.pipeline import PHASE_PROGRESS, MapGenerator, generate_map, quick_generate
from realmgen.types import MapConfig


# ============================================================================
# Scenario: island "alpha"
# ============================================================================


@pytest.fixture(scope="module")
def alpha_map():
    """Full-size local island map; generated once for the module."""
    return generate_map(seed="alpha", map_type=MapType.ISLAND, width=256, height=256, sea_level=0.35)


class TestIslandScenario:
    """The reference island map has a believable amount of land."""

    def test_has_land_and_ocean(self, alpha_map):
        """Both ocean and land should be present."""
        counts = alpha_map.biome_counts()

        assert counts.get("ocean", 0) > 0
        assert sum(v for k, v in counts.items() if k != "ocean") > 0

    def test_land_fraction(self, alpha_map):
        """Land should cover between a fifth and three fifths of the map."""
        assert 0.2 <= alpha_map.land_fraction() <= 0.6

    def test_ocean_consistency(self, alpha_map):
        """Ocean biome exactly where the classified elevation is below sea level."""
        ocean = alpha_map.biomes == Biome.OCEAN

        assert np.array_equal(ocean, alpha_map.classified_elevation < 0.35)

    def test_settlement_count(self, alpha_map):
        """No more settlements than the density target allows."""
        land = int(np.count_nonzero(alpha_map.biomes != Biome.OCEAN))
        target = max(3, min(int(land / (256 * 256) * 0.3 * 50), 100))

        assert len(alpha_map.settlements) <= target


# ============================================================================
# Small-map pipeline behaviour
# ============================================================================


class TestMapGenerator:
    """Tests for the MapGenerator orchestrator."""

    def test_output_shapes(self, small_config):
        """All grids should be shaped (height, width)."""
        result = MapGenerator(small_config).generate()

        for grid in (result.heightmap, result.temperature, result.moisture, result.biomes,
                     result.classified_elevation):
            assert grid.shape == (48, 48)

    def test_ranges(self, small_config):
        """Elevation, climate and biome ids stay in range."""
        result = MapGenerator(small_config).generate()

        for grid in (result.heightmap, result.temperature, result.moisture):
            assert np.all(np.isfinite(grid))
            assert grid.min() >= 0.0
            assert grid.max() <= 1.0
        assert result.biomes.max() <= max(Biome)

    def test_deterministic(self, small_config):
        """Same config and seed should produce identical maps."""
        a = MapGenerator(small_config).generate()
        b = MapGenerator(small_config).generate()

        assert np.array_equal(a.heightmap, b.heightmap)
        assert np.array_equal(a.biomes, b.biomes)
        assert [r.to_dict() for r in a.rivers] == [r.to_dict() for r in b.rivers]
        assert [s.to_dict() for s in a.settlements] == [s.to_dict() for s in b.settlements]

    def test_different_seeds_differ(self, small_config):
        """Changing the seed should change the map."""
        a = MapGenerator(small_config).generate()
        b = MapGenerator(small_config.model_copy(update={"seed": "another"})).generate()

        assert not np.array_equal(a.heightmap, b.heightmap)

    def test_progress_phases(self, small_config):
        """Every phase is reported once, in order, with rising progress."""
        events = []
        MapGenerator(small_config, progress_callback=events.append).generate()

        assert [e.phase for e in events] == [str(p) for p in GenerationPhase]
        assert [e.progress for e in events] == [PHASE_PROGRESS[p] for p in GenerationPhase]
        assert events[-1].progress == 1.0
        assert all(e.message for e in events)

    def test_carving_only_lowers_heightmap(self, small_config):
        """Carving changes the heightmap but not the classified snapshot."""
        result = MapGenerator(small_config).generate()

        assert np.all(result.heightmap <= result.classified_elevation)

    def test_no_carving(self, small_config):
        """Without carving the heightmap matches the classified snapshot."""
        config = small_config.model_copy(update={"carve_rivers": False})
        result = MapGenerator(config).generate()

        assert np.array_equal(result.heightmap, result.classified_elevation)

    def test_namer_fills_names(self, small_config):
        """The namer hook receives the seed and the placed features."""
        calls = []

        def namer(seed, settlements, rivers):
            calls.append(seed)
            for i, settlement in enumerate(settlements):
                settlement.name = f"Town {i}"
            for i, river in enumerate(rivers):
                river.name = f"River {i}"

        result = MapGenerator(small_config, namer=namer).generate()

        assert calls == [small_config.seed]
        assert all(s.name.startswith("Town ") for s in result.settlements)
        assert all(r.name.startswith("River ") for r in result.rivers)

    def test_empty_seed_replaced(self):
        """An empty seed is replaced by a generated one."""
        generator = MapGenerator(MapConfig(seed="", width=16, height=16))

        assert len(generator.config.seed) == 12

    @pytest.mark.parametrize(
        "update",
        [{"width": 0}, {"sea_level": 2.0}, {"water_coverage": -1.0}],
    )
    def test_unvalidated_config_rejected(self, update):
        """A config copied past validation is rejected before any stage runs."""
        events = []
        config = MapConfig(seed="x", width=16, height=16).model_copy(update=update)

        with pytest.raises(ConfigurationError):
            MapGenerator(config, progress_callback=events.append).generate()

        assert events == []


class TestGenerateMap:
    """Tests for the generate_map convenience function."""

    def test_overrides(self, small_config):
        """Keyword overrides should replace config fields."""
        result = generate_map(small_config, map_type="atoll")

        assert result.config.map_type == MapType.ATOLL
        assert result.config.width == 48

    def test_invalid_config_raises_before_any_stage(self):
        """Invalid options raise ConfigurationError without reporting progress."""
        events = []

        with pytest.raises(ConfigurationError):
            generate_map(seed="x", sea_level=2.0, progress_callback=events.append)

        assert events == []

    def test_unknown_map_type(self):
        """Unknown map types are configuration errors."""
        with pytest.raises(ConfigurationError):
            generate_map(seed="x", map_type="volcano", width=16, height=16)

    @pytest.mark.parametrize("map_type", list(MapType))
    def test_every_map_type_generates(self, map_type):
        """Each map type should run the full pipeline."""
        result = generate_map(
            seed="types", map_type=map_type, width=32, height=32, erosion_iterations=50, thermal_iterations=1,
        )

        assert result.biomes.shape == (32, 32)
        assert 0.0 <= result.land_fraction() <= 1.0


class TestQuickGenerate:
    """Tests for quick_generate."""

    def test_random_seed_and_preset_size(self, monkeypatch):
        """Uses a fresh seed and the preset dimensions."""
        monkeypatch.setitem(MAP_SIZE_DIMENSIONS, MapSize.LOCAL, 32)

        result = quick_generate(MapType.ARCHIPELAGO, MapSize.LOCAL)

        assert len(result.config.seed) == 12
        assert result.config.map_type == MapType.ARCHIPELAGO
        assert result.biomes.shape == (32, 32)


class TestMapData:
    """Tests for MapData accessors."""

    def test_summary(self, small_config):
        """Summary should describe the map compactly."""
        result = MapGenerator(small_config).generate()
        summary = result.summary()

        assert summary["seed"] == small_config.seed
        assert summary["size"] == "48x48"
        assert summary["rivers"] == len(result.rivers)
        assert sum(summary["biomes"].values()) == 48 * 48

    def test_to_dict(self, small_config):
        """to_dict should produce plain containers."""
        data = MapGenerator(small_config).generate().to_dict()

        assert set(data) == {"config", "heightmap", "temperature", "moisture", "biomes", "rivers", "settlements"}
        assert isinstance(data["heightmap"], list)
        assert len(data["biomes"]) == 48
        for settlement in data["settlements"]:
            assert SettlementSize(settlement["size"])


class TestCli:
    """Tests for the command line entry point."""

    def test_runs(self):
        """The CLI should generate a small map and exit cleanly."""
        assert main(["--seed", "cli", "--size", "local", "--width", "32", "--height", "32",
                     "--erosion-iterations", "20"]) == 0

    def test_invalid_option(self):
        """Invalid values exit with status 2."""
        assert main(["--seed", "cli", "--width", "32", "--height", "32", "--sea-level", "4"]) == 2

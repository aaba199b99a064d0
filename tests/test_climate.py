"""Tests for the climate model."""

import numpy as np
import pytest

from realmgen.climate import MOISTURE_DECAY, generate_climate, spread_moisture
from realmgen.terrain.heightmap import generate_heightmap
from realmgen.types import MapConfig

TEST_SEED = "climate"
SEA_LEVEL = 0.35


@pytest.fixture
def heightmap():
    return generate_heightmap(MapConfig(seed=TEST_SEED, width=48, height=48))


class TestGenerateClimate:
    """Tests for temperature and moisture generation."""

    def test_shapes_and_ranges(self, heightmap):
        """Both grids should match the heightmap and stay in [0, 1]."""
        temperature, moisture = generate_climate(heightmap, TEST_SEED, SEA_LEVEL)

        for grid in (temperature, moisture):
            assert grid.shape == heightmap.shape
            assert grid.min() >= 0.0
            assert grid.max() <= 1.0

    def test_deterministic(self, heightmap):
        """Same inputs should produce identical climate."""
        t1, m1 = generate_climate(heightmap, TEST_SEED, SEA_LEVEL)
        t2, m2 = generate_climate(heightmap, TEST_SEED, SEA_LEVEL)

        assert np.array_equal(t1, t2)
        assert np.array_equal(m1, m2)

    def test_does_not_modify_heightmap(self, heightmap):
        """The heightmap is read-only for the climate stage."""
        original = heightmap.copy()
        generate_climate(heightmap, TEST_SEED, SEA_LEVEL)

        assert np.array_equal(heightmap, original)

    def test_equator_warmer_than_poles(self):
        """Latitude should dominate temperature on flat terrain."""
        flat = np.full((64, 64), SEA_LEVEL)
        temperature, _ = generate_climate(flat, TEST_SEED, SEA_LEVEL)

        assert temperature[32].mean() > temperature[0].mean() + 0.3
        assert temperature[32].mean() > temperature[-1].mean() + 0.3

    def test_altitude_cools(self):
        """High ground should be colder than low ground at the same latitude."""
        terrain = np.full((64, 64), 0.4)
        terrain[:, 32:] = 0.9
        temperature, _ = generate_climate(terrain, TEST_SEED, SEA_LEVEL)

        assert temperature[20:44, 40:].mean() < temperature[20:44, :24].mean()


class TestSpreadMoisture:
    """Tests for moisture propagation from water."""

    def test_water_saturated(self):
        """Water cells start and stay fully wet."""
        terrain = np.full((10, 10), 0.5)
        terrain[:, 0] = 0.1

        moisture = spread_moisture(terrain, SEA_LEVEL)

        assert np.all(moisture[:, 0] == 1.0)

    def test_decays_with_distance(self):
        """Moisture falls off by the decay factor per step inland."""
        terrain = np.full((10, 10), 0.5)
        terrain[:, 0] = 0.1

        moisture = spread_moisture(terrain, SEA_LEVEL)

        assert moisture[5, 1] == pytest.approx(MOISTURE_DECAY)
        assert moisture[5, 2] == pytest.approx(MOISTURE_DECAY ** 2)
        assert moisture[5, 8] < moisture[5, 2]

    def test_highland_decays_faster(self):
        """Rain shadow: cells high above sea level dry out faster."""
        low = np.full((10, 10), 0.5)
        low[:, 0] = 0.1
        high = np.full((10, 10), 0.8)
        high[:, 0] = 0.1

        assert spread_moisture(high, SEA_LEVEL)[5, 3] < spread_moisture(low, SEA_LEVEL)[5, 3]

    def test_no_water_stays_dry(self):
        """Without any water there is nothing to spread."""
        moisture = spread_moisture(np.full((8, 8), 0.6), SEA_LEVEL)

        assert np.all(moisture == 0.0)

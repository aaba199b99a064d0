"""Pytest configuration and fixtures for realmgen tests."""

import numpy as np
import pytest

from realmgen.rng import SeededRandom
from realmgen.types import MapConfig


@pytest.fixture
def rng():
    """Fresh generator on a fixed seed."""
    return SeededRandom("fixture-seed")


@pytest.fixture
def small_config():
    """Small map configuration that runs the whole pipeline quickly."""
    return MapConfig(
        seed="fixture-seed",
        width=48,
        height=48,
        erosion_iterations=200,
        thermal_iterations=2,
    )


@pytest.fixture
def cone_heightmap():
    """60x60 cone peaking at the centre and dropping below 0.35 past radius 20."""
    ys, xs = np.mgrid[0:60, 0:60]
    r = np.hypot(xs - 30, ys - 30)
    return np.clip(0.95 - r * 0.03, 0.0, 1.0)

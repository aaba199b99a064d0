"""Climate model: temperature and moisture grids derived from elevation."""

import logging

import numpy as np
from numpy.typing import NDArray

from realmgen.mathutils import gaussian_blur
from realmgen.rng import SeededRandom, stage_rng
from realmgen.terrain.noise import PerlinNoise, grid_coordinates

logger = logging.getLogger(__name__)

TEMPERATURE_BLUR_RADIUS = 3
MOISTURE_BLUR_RADIUS = 4

MOISTURE_SPREAD_PASSES = 30
MOISTURE_DECAY = 0.92
MOISTURE_DECAY_HIGHLAND = 0.7  # Rain shadow above sea_level + 0.3
HIGHLAND_OFFSET = 0.3


def generate_temperature(
    heightmap: NDArray[np.float64],
    sea_level: float,
    rng: SeededRandom,
) -> NDArray[np.float64]:
    """Temperature from latitude, altitude and ocean moderation.

    Warmest along the horizontal centre line, cooling toward the top and
    bottom edges and with height above sea level.
    """
    noise = PerlinNoise(rng)
    h, w = heightmap.shape
    xx, yy = grid_coordinates(w, h)

    latitude = 1.0 - np.abs(yy / h - 0.5) * 2.0
    base = latitude * 0.8 + 0.1

    elevation_factor = 1.0 - np.maximum(0.0, heightmap - sea_level) * 1.5

    jitter = noise.sample(xx / 150, yy / 150) * 0.15 + noise.sample(xx / 50 + 500, yy / 50 + 500) * 0.08
    ocean = np.where(heightmap < sea_level, 0.1, 0.0)

    temperature = np.clip(base * elevation_factor + jitter + ocean, 0.0, 1.0)
    return np.clip(gaussian_blur(temperature, TEMPERATURE_BLUR_RADIUS), 0.0, 1.0)


def spread_moisture(
    heightmap: NDArray[np.float64],
    sea_level: float,
    passes: int = MOISTURE_SPREAD_PASSES,
) -> NDArray[np.float64]:
    """Propagate moisture inland from water cells.

    Water starts saturated.  Each pass scans interior land cells in
    row-major order and raises each to the wettest 4-neighbour times a
    decay factor; updates are visible to later cells in the same pass.
    """
    h, w = heightmap.shape
    elevation = heightmap.ravel().tolist()
    water = heightmap < sea_level
    moisture = np.where(water, 1.0, 0.0).ravel().tolist()

    highland = sea_level + HIGHLAND_OFFSET
    land_cells = [
        (y * w + x, MOISTURE_DECAY_HIGHLAND if elevation[y * w + x] > highland else MOISTURE_DECAY)
        for y in range(1, h - 1)
        for x in range(1, w - 1)
        if elevation[y * w + x] >= sea_level
    ]

    for _ in range(passes):
        for idx, decay in land_cells:
            wettest = max(moisture[idx - 1], moisture[idx + 1], moisture[idx - w], moisture[idx + w])
            spread = wettest * decay
            if spread > moisture[idx]:
                moisture[idx] = spread

    return np.asarray(moisture, dtype=np.float64).reshape(h, w)


def generate_moisture(
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    sea_level: float,
    rng: SeededRandom,
) -> NDArray[np.float64]:
    """Moisture from water proximity, noise and temperature-driven evaporation."""
    noise = PerlinNoise(rng)
    h, w = heightmap.shape
    xx, yy = grid_coordinates(w, h)

    moisture = spread_moisture(heightmap, sea_level)

    variance = noise.sample(xx / 100, yy / 100) * 0.2 + noise.sample(xx / 50, yy / 50) * 0.1
    land = heightmap >= sea_level
    moisture = np.where(
        land,
        np.clip(moisture + variance - temperature * 0.15, 0.0, 1.0),
        moisture,
    )
    return np.clip(gaussian_blur(moisture, MOISTURE_BLUR_RADIUS), 0.0, 1.0)


def generate_climate(
    heightmap: NDArray[np.float64],
    seed: str,
    sea_level: float,
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Derive temperature and moisture from the eroded heightmap.

    Args:
        heightmap: Elevation grid shaped ``(height, width)``; not modified
        seed: Master seed; the stage draws from ``<seed>_climate``
        sea_level: Ocean threshold

    Returns:
        ``(temperature, moisture)``, both shaped like *heightmap* in [0, 1]
    """
    rng = stage_rng(seed, "climate")
    temperature = generate_temperature(heightmap, sea_level, rng)
    moisture = generate_moisture(heightmap, temperature, sea_level, rng)

    logger.debug(
        "Climate: mean temperature %.3f, mean moisture %.3f",
        float(temperature.mean()), float(moisture.mean()),
    )
    return temperature, moisture

"""Biome classification.

Biomes follow a Whittaker-style lookup: elevation first (ocean, beach,
snow, mountain), then nested temperature bands split by moisture.  The
classifier is a pure function of its inputs; per-cell jitter is computed
separately from seeded noise and passed in.
"""

import logging

import numpy as np
from numpy.typing import NDArray

from realmgen.models import Biome
from realmgen.rng import stage_rng
from realmgen.terrain.noise import PerlinNoise, grid_coordinates

logger = logging.getLogger(__name__)

BEACH_BAND = 0.03  # Height above sea level that still counts as beach
BEACH_SHRINK = 0.02  # Beach band reduction where the coast noise is high
MOUNTAIN_LEVEL = 0.7
SNOW_LEVEL = 0.85
SWAMP_BAND = 0.1  # Swamps only form this close to sea level

JITTER_AMPLITUDE = 0.08


def classify_biome(
    elevation: float,
    temperature: float,
    moisture: float,
    sea_level: float,
    jitter_t: float = 0.0,
    jitter_m: float = 0.0,
    beach_offset: float = 0.0,
) -> Biome:
    """Classify one cell.

    Args:
        elevation: Cell elevation in [0, 1]
        temperature: Cell temperature in [0, 1]
        moisture: Cell moisture in [0, 1]
        sea_level: Ocean threshold
        jitter_t, jitter_m: Offsets added to temperature/moisture before
            classification; the results are clamped to [0, 1]
        beach_offset: Amount the beach band is narrowed by

    Returns:
        Exactly one :class:`Biome`; every input maps somewhere.
    """
    temp = min(max(temperature + jitter_t, 0.0), 1.0)
    moist = min(max(moisture + jitter_m, 0.0), 1.0)

    if elevation < sea_level:
        return Biome.OCEAN
    if elevation < sea_level + BEACH_BAND - beach_offset:
        return Biome.BEACH
    if elevation > SNOW_LEVEL or (elevation > MOUNTAIN_LEVEL and temp < 0.2):
        return Biome.SNOW
    if elevation > MOUNTAIN_LEVEL:
        return Biome.MOUNTAIN

    lowland = elevation < sea_level + SWAMP_BAND

    # Cold
    if temp < 0.2:
        return Biome.SNOW if moist > 0.5 else Biome.TUNDRA

    # Cool
    if temp < 0.4:
        if moist > 0.6:
            return Biome.FOREST
        if moist > 0.3:
            return Biome.GRASSLAND
        return Biome.TUNDRA

    # Temperate
    if temp < 0.7:
        if moist > 0.8:
            return Biome.SWAMP if lowland else Biome.FOREST
        if moist > 0.4:
            return Biome.FOREST
        if moist > 0.2:
            return Biome.GRASSLAND
        return Biome.DESERT

    # Hot
    if moist > 0.7:
        return Biome.SWAMP if lowland else Biome.RAINFOREST
    if moist > 0.4:
        return Biome.FOREST
    if moist > 0.2:
        return Biome.GRASSLAND
    return Biome.DESERT


def classify_grid(
    elevation: NDArray[np.float64],
    temperature: NDArray[np.float64],
    moisture: NDArray[np.float64],
    sea_level: float,
    jitter_t: NDArray[np.float64] | float = 0.0,
    jitter_m: NDArray[np.float64] | float = 0.0,
    beach_offset: NDArray[np.float64] | float = 0.0,
) -> NDArray[np.uint8]:
    """Vectorised :func:`classify_biome` over whole grids.

    Conditions are listed in the same priority order as the scalar rules;
    ``np.select`` picks the first that holds for each cell.
    """
    e = np.asarray(elevation, dtype=np.float64)
    t = np.clip(temperature + jitter_t, 0.0, 1.0)
    m = np.clip(moisture + jitter_m, 0.0, 1.0)
    e, t, m = np.broadcast_arrays(e, t, m)

    lowland = e < sea_level + SWAMP_BAND
    cold = t < 0.2
    cool = ~cold & (t < 0.4)
    temperate = ~cold & ~cool & (t < 0.7)
    hot = ~cold & ~cool & ~temperate

    rules = [
        (e < sea_level, Biome.OCEAN),
        (e < sea_level + BEACH_BAND - beach_offset, Biome.BEACH),
        ((e > SNOW_LEVEL) | ((e > MOUNTAIN_LEVEL) & cold), Biome.SNOW),
        (e > MOUNTAIN_LEVEL, Biome.MOUNTAIN),
        # Cold
        (cold & (m > 0.5), Biome.SNOW),
        (cold, Biome.TUNDRA),
        # Cool
        (cool & (m > 0.6), Biome.FOREST),
        (cool & (m > 0.3), Biome.GRASSLAND),
        (cool, Biome.TUNDRA),
        # Temperate
        (temperate & (m > 0.8) & lowland, Biome.SWAMP),
        (temperate & (m > 0.8), Biome.FOREST),
        (temperate & (m > 0.4), Biome.FOREST),
        (temperate & (m > 0.2), Biome.GRASSLAND),
        (temperate, Biome.DESERT),
        # Hot
        (hot & (m > 0.7) & lowland, Biome.SWAMP),
        (hot & (m > 0.7), Biome.RAINFOREST),
        (hot & (m > 0.4), Biome.FOREST),
        (hot & (m > 0.2), Biome.GRASSLAND),
    ]
    conditions = [np.broadcast_to(cond, e.shape) for cond, _ in rules]
    choices = [int(biome) for _, biome in rules]
    return np.select(conditions, choices, default=int(Biome.DESERT)).astype(np.uint8)


def generate_biomes(
    heightmap: NDArray[np.float64],
    temperature: NDArray[np.float64],
    moisture: NDArray[np.float64],
    seed: str,
    sea_level: float,
) -> NDArray[np.uint8]:
    """Classify every cell of the map.

    Medium-frequency noise jitters temperature and moisture so bands do not
    follow contour lines exactly, and narrows the beach in places so
    forests occasionally reach the water.

    Args:
        heightmap: Elevation snapshot to classify
        temperature: Temperature grid
        moisture: Moisture grid
        seed: Master seed; the stage draws from ``<seed>_biomes``
        sea_level: Ocean threshold

    Returns:
        ``uint8`` grid of :class:`Biome` ids shaped like *heightmap*
    """
    rng = stage_rng(seed, "biomes")
    noise = PerlinNoise(rng)
    h, w = heightmap.shape
    xx, yy = grid_coordinates(w, h)

    jitter_t = noise.sample(xx / 60, yy / 60) * JITTER_AMPLITUDE
    jitter_m = noise.sample(xx / 60 + 100, yy / 60 + 100) * JITTER_AMPLITUDE
    beach_offset = np.where(noise.sample(xx / 20, yy / 20) > 0.6, BEACH_SHRINK, 0.0)

    biomes = classify_grid(heightmap, temperature, moisture, sea_level, jitter_t, jitter_m, beach_offset)

    logger.debug("Biomes: %d land cells", int(np.count_nonzero(biomes != Biome.OCEAN)))
    return biomes

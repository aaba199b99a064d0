"""Heightmap synthesis: fractal terrain shaped by a landmass mask."""

import logging
import math

import numpy as np
from numpy.typing import NDArray

from realmgen.mathutils import smootherstep
from realmgen.rng import SeededRandom, stage_rng
from realmgen.terrain.geographic_masks import OCEAN_THRESHOLD, MaskContext, apply_landmass_mask
from realmgen.terrain.noise import PerlinNoise, grid_coordinates
from realmgen.types import MapConfig

logger = logging.getLogger(__name__)

FBM_OCTAVES = 6
FBM_LACUNARITY = 2.0

WARP_SCALE = 0.005  # Low frequency for large shape distortion
WARP_STRENGTH = 0.2  # Fraction of the shorter map side

# Height offset used when despeckling flips a cell across sea level
DESPECKLE_OFFSET = 0.01


def generate_fbm(
    width: int,
    height: int,
    noise: PerlinNoise,
    roughness: float,
) -> NDArray[np.float64]:
    """Fractal Brownian motion terrain in [-1, 1].

    Persistence grows with *roughness* (0.5 to 0.7); the base scale is a
    quarter of the longer map side so features scale with the map.
    """
    xx, yy = grid_coordinates(width, height)
    base_scale = max(width, height) / 4
    return noise.octave_noise_2d(
        xx,
        yy,
        octaves=FBM_OCTAVES,
        persistence=0.5 + roughness * 0.2,
        lacunarity=FBM_LACUNARITY,
        scale=1.0 / base_scale,
    )


def build_mask_context(
    width: int,
    height: int,
    rng: SeededRandom,
    water_coverage: float,
) -> MaskContext:
    """Warp, rotate and stretch the cell grid for the mask stage.

    Two independent low-frequency noise fields displace every coordinate by
    up to ~20% of the shorter side.  The warped grid is then rotated by a
    random angle and each axis scaled by 0.8-1.2x so landmass orientation
    and proportions vary per seed.
    """
    warp_x = PerlinNoise(rng)
    warp_y = PerlinNoise(rng)
    strength = min(width, height) * WARP_STRENGTH

    angle = rng.next() * math.pi * 2
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    scale_x = 0.8 + rng.next() * 0.4
    scale_y = 0.8 + rng.next() * 0.4

    xx, yy = grid_coordinates(width, height)
    wx = xx + warp_x.sample(xx * WARP_SCALE, yy * WARP_SCALE) * strength
    wy = yy + warp_y.sample(xx * WARP_SCALE, yy * WARP_SCALE) * strength

    centre_x = width / 2
    centre_y = height / 2
    normalized_dist = np.hypot(wx - centre_x, wy - centre_y) / (min(width, height) / 2)

    dx = wx - centre_x
    dy = wy - centre_y
    tx = (dx * cos_a - dy * sin_a) * scale_x + centre_x
    ty = (dx * sin_a + dy * cos_a) * scale_y + centre_y

    variation = warp_x.sample(wx / 50, wy / 50) * 0.2

    return MaskContext(
        width=width,
        height=height,
        wx=wx,
        wy=wy,
        tx=tx,
        ty=ty,
        normalized_dist=normalized_dist,
        variation=variation,
        water_coverage=water_coverage,
        rng=rng,
    )


def blend_with_mask(
    terrain: NDArray[np.float64],
    mask: NDArray[np.float64],
    sea_level: float,
) -> NDArray[np.float64]:
    """Combine fBm terrain with a landmass mask.

    Below the ocean threshold the mask alone sets depth, ramping from 0 to
    just under sea level.  Above it, a smootherstep of the mask lifts the
    cell from sea level toward a ceiling set by the terrain noise.
    """
    terrain01 = (terrain + 1.0) / 2.0

    ocean = (mask / OCEAN_THRESHOLD) * sea_level * 0.95

    land_factor = smootherstep(0.0, 1.0, (mask - OCEAN_THRESHOLD) / (1.0 - OCEAN_THRESHOLD))
    ceiling = 0.4 + terrain01 * 0.6
    land = sea_level + (ceiling - sea_level) * land_factor

    return np.where(mask < OCEAN_THRESHOLD, ocean, land)


def despeckle(heightmap: NDArray[np.float64], sea_level: float) -> int:
    """Remove single-cell islands and ponds in place.

    One 4-neighbour cellular automaton pass over interior cells: land with
    at most one land neighbour sinks just below sea level, water with three
    or more land neighbours rises just above it.  All decisions use the
    pre-pass grid.

    Returns:
        Number of cells changed
    """
    h, w = heightmap.shape
    if h < 3 or w < 3:
        return 0

    land = heightmap > sea_level
    neighbours = (
        land[1:-1, :-2].astype(np.int8)
        + land[1:-1, 2:]
        + land[:-2, 1:-1]
        + land[2:, 1:-1]
    )
    interior = land[1:-1, 1:-1]

    sink = interior & (neighbours <= 1)
    raise_ = ~interior & (neighbours >= 3)

    core = heightmap[1:-1, 1:-1]
    core[sink] = sea_level - DESPECKLE_OFFSET
    core[raise_] = sea_level + DESPECKLE_OFFSET

    return int(np.count_nonzero(sink) + np.count_nonzero(raise_))


def generate_heightmap(config: MapConfig) -> NDArray[np.float64]:
    """Generate the shaped, despeckled heightmap for *config*.

    Args:
        config: Validated map configuration

    Returns:
        Elevation grid shaped ``(height, width)`` in [0, 1]
    """
    rng = stage_rng(config.seed, "heightmap")
    noise = PerlinNoise(rng)

    terrain = generate_fbm(config.width, config.height, noise, config.roughness)

    # Water coverage acts only through the lake and inland masks
    ctx = build_mask_context(config.width, config.height, rng, config.water_coverage)
    mask = apply_landmass_mask(ctx, config.map_type)

    heightmap = blend_with_mask(terrain, mask, config.sea_level)
    np.clip(heightmap, 0.0, 1.0, out=heightmap)

    changed = despeckle(heightmap, config.sea_level)

    logger.debug(
        "Heightmap %s %dx%d: despeckled %d cells, ocean fraction %.3f",
        config.map_type, config.width, config.height, changed,
        float(np.mean(heightmap < config.sea_level)),
    )
    return heightmap

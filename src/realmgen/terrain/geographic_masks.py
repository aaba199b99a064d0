"""Landmass masks for heightmap generation.

Each map type defines a mask function that decides where land and ocean
sit before terrain detail is blended in.  Masks return a continuous
land-likelihood grid: roughly 0 for open ocean, 0.3 at the coastline and
1 for deep inland.

Mask functions receive a :class:`MaskContext` holding precomputed
coordinate grids (domain-warped, and additionally rotated/scaled for the
directional shapes) plus the stage PRNG.  Any noise a mask needs is built
from that PRNG once per call, so every mask is evaluated for the whole
grid in a single vectorised pass.

Shapes:
  island       – radial falloff
  continent    – wide radial falloff that never fully drowns
  archipelago  – clustered blobs gated by detail noise
  peninsula    – landmass tapering toward the bottom edge
  isthmus      – two landmasses joined by a narrow waist
  coastal      – sinusoidal coastline with inlets
  atoll        – broken ring around a lagoon
  delta        – fan of land cut by distributary channels
  fjord        – deep inlets penetrating from the top edge
  inland       – solid land with threshold lakes
  great-lake   – central body of water with islands
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

import numpy as np
from numpy.typing import NDArray

from realmgen.errors import ConfigurationError
from realmgen.mathutils import smootherstep
from realmgen.models import MapType
from realmgen.rng import SeededRandom
from realmgen.terrain.noise import PerlinNoise, grid_coordinates

# Mask value below which a cell becomes ocean
OCEAN_THRESHOLD = 0.3

# Deep-inland cells above this mask value may be carved into lakes
LAKE_CARVE_THRESHOLD = 0.8

# Types large enough to need inland lakes
LAKE_CARVE_TYPES = frozenset(
    {MapType.CONTINENT, MapType.PENINSULA, MapType.ISTHMUS, MapType.ISLAND}
)

ATOLL_RING_RADIUS = 0.45
ATOLL_RING_WIDTH = 0.12


@dataclass(frozen=True)
class MaskContext:
    """Context passed to landmass mask functions.

    Attributes:
        width: Grid width in cells.
        height: Grid height in cells.
        wx, wy: Domain-warped cell coordinates.
        tx, ty: Warped coordinates after rotation and axis scaling.
        normalized_dist: Warped distance from the map centre divided by
            half the shorter side (0 at centre, ~1 at the nearest edge).
        variation: Small per-cell noise used to roughen shape edges.
        water_coverage: Lake density parameter in [0, 1].
        rng: Stage PRNG masks draw their noise fields from.
    """

    width: int
    height: int
    wx: NDArray[np.float64]
    wy: NDArray[np.float64]
    tx: NDArray[np.float64]
    ty: NDArray[np.float64]
    normalized_dist: NDArray[np.float64]
    variation: NDArray[np.float64]
    water_coverage: float
    rng: SeededRandom

    @classmethod
    def unwarped(
        cls,
        width: int,
        height: int,
        rng: SeededRandom,
        water_coverage: float = 0.4,
    ) -> MaskContext:
        """Context on the plain cell grid with no warp, rotation or variation."""
        xx, yy = grid_coordinates(width, height)
        dist = np.hypot(xx - width / 2, yy - height / 2) / (min(width, height) / 2)
        return cls(
            width=width,
            height=height,
            wx=xx,
            wy=yy,
            tx=xx,
            ty=yy,
            normalized_dist=dist,
            variation=np.zeros_like(xx),
            water_coverage=water_coverage,
            rng=rng,
        )


# Type alias for mask functions.
MaskFn = Callable[[MaskContext], NDArray[np.float64]]


# ── Radial shapes ────────────────────────────────────────────────


def island_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Single island: land near the centre falling off toward the edges."""
    return 1.0 - smootherstep(0.3, 0.9, ctx.normalized_dist + ctx.variation)


def continent_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Large landmass; the falloff is capped so only the rim turns to sea."""
    falloff = smootherstep(0.5, 1.0, ctx.normalized_dist + ctx.variation * 0.5)
    return 1.0 - falloff * 0.7


def archipelago_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Scattered island groups.

    Low-frequency cluster noise decides where islands may form and
    higher-frequency detail noise shapes the individual islands.  The map
    border fades to ocean so no island is cut off by the edge.
    """
    cluster_noise = PerlinNoise(ctx.rng)
    detail_noise = PerlinNoise(ctx.rng)

    nx = ctx.wx / ctx.width
    ny = ctx.wy / ctx.height

    clusters = (cluster_noise.sample(nx * 3, ny * 3) + 1.0) / 2.0
    islands = (detail_noise.sample(nx * 15, ny * 15) + 1.0) / 2.0

    mask = smootherstep(0.4, 0.8, clusters) * islands * 1.5

    edge_dist = np.maximum(np.abs(nx - 0.5), np.abs(ny - 0.5)) * 2.0
    edge_falloff = smootherstep(0.8, 1.0, edge_dist)

    return np.clip(mask * (1.0 - edge_falloff), 0.0, 1.0)


# ── Directional shapes ───────────────────────────────────────────


def peninsula_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Mainland at the top narrowing into a tapered point toward the bottom."""
    y_factor = ctx.ty / ctx.height
    x_centre = np.abs(ctx.tx - ctx.width / 2) / (ctx.width / 2)

    base_width = 0.8 - y_factor * 0.6 + ctx.variation * 0.15

    tip_start = 0.7
    tip_progress = (y_factor - tip_start) / (1.0 - tip_start)
    tip_width = base_width * (1.0 - tip_progress * 0.9)
    tip_fade = 1.0 - smootherstep(0.85, 1.0, y_factor)
    tip = np.where(
        x_centre < tip_width,
        smootherstep(tip_width, tip_width * 0.5, x_centre) * tip_fade,
        0.0,
    )

    body = np.where(
        x_centre < base_width,
        smootherstep(base_width, base_width * 0.6, x_centre),
        0.0,
    )

    return np.where(y_factor > tip_start, tip, body)


def isthmus_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Land at the top and bottom joined by a narrow strip in the middle."""
    x_centre = np.abs(ctx.tx - ctx.width / 2) / (ctx.width / 2)
    y_factor = ctx.ty / ctx.height

    narrowness = np.sin(y_factor * math.pi)
    waist = 0.7 - narrowness * 0.55 + ctx.variation * 0.1
    wobble = np.sin(y_factor * math.pi * 6) * 0.05
    width = waist + wobble

    return np.where(x_centre < width, smootherstep(width, width * 0.7, x_centre), 0.0)


def coastal_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Ocean along the left edge behind an irregular wavy coastline."""
    phase1 = ctx.rng.next() * math.pi * 2
    phase2 = ctx.rng.next() * math.pi * 2
    phase3 = ctx.rng.next() * math.pi * 2

    x_factor = ctx.tx / ctx.width
    y_factor = ctx.ty / ctx.height

    wave1 = np.sin(y_factor * math.pi * 3 + phase1) * 0.08
    wave2 = np.sin(y_factor * math.pi * 7 + 1.5 + phase2) * 0.04
    wave3 = np.sin(y_factor * math.pi * 13 + 3.0 + phase3) * 0.02
    bays = np.sin(y_factor * math.pi * 1.5) * 0.12

    coast = 0.25 + wave1 + wave2 + wave3 + bays + ctx.variation * 0.15

    inlet_chance = np.sin(y_factor * math.pi * 5) * np.sin(y_factor * math.pi * 8)
    coast = coast + np.where(inlet_chance > 0.5, 0.1, 0.0)

    return np.where(x_factor < coast, smootherstep(0.0, coast * 0.8, x_factor), 1.0)


def delta_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """River delta fanning out from the top edge into channel-cut islands."""
    channel_noise = PerlinNoise(ctx.rng)

    x_norm = ctx.tx / ctx.width
    y_factor = ctx.ty / ctx.height

    dist_from_centre = np.abs(x_norm - 0.5)
    max_width = 0.1 + (1.0 - y_factor) * 0.45

    density = (1.0 - y_factor) * 8 + 2
    channel = channel_noise.sample(x_norm * density, y_factor * 3)
    is_channel = (channel < -0.2 - y_factor * 0.3) & (y_factor > 0.3)

    edge_fade = smootherstep(max_width, max_width * 0.6, dist_from_centre)

    has_island = channel_noise.sample(ctx.tx / 40, ctx.ty / 40) > 0.2
    outer = np.where(has_island, edge_fade * 0.8, 0.0)
    inner = edge_fade * (0.6 + y_factor * 0.4 + ctx.variation * 0.1)

    land = np.where(y_factor > 0.7, outer, inner)
    land = np.where(is_channel, 0.0, land)
    return np.where(dist_from_centre > max_width, 0.0, land)


def fjord_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Rugged coast with long narrow inlets reaching down from the top edge."""
    fjord_noise1 = PerlinNoise(ctx.rng)
    fjord_noise2 = PerlinNoise(ctx.rng)

    freq1_x = 4 + ctx.rng.next() * 3
    freq1_y = 0.4 + ctx.rng.next() * 0.4
    freq2_x = 7 + ctx.rng.next() * 5
    freq2_y = 0.6 + ctx.rng.next() * 0.6

    x_norm = ctx.tx / ctx.width
    y_factor = ctx.ty / ctx.height

    base_land = smootherstep(0.1, 0.5, y_factor)

    fjord1 = fjord_noise1.sample(x_norm * freq1_x, y_factor * freq1_y)
    fjord2 = fjord_noise2.sample(x_norm * freq2_x + 10, y_factor * freq2_y)

    # Stronger signal reaches further inland, up to 70% of the map
    depth1 = np.where(fjord1 > 0.3, (fjord1 - 0.3) * 2.5, 0.0)
    depth2 = np.where(fjord2 > 0.4, (fjord2 - 0.4) * 2.0, 0.0)
    reach1 = depth1 * 0.7
    reach2 = depth2 * 0.7 * 0.8

    in_fjord = ((y_factor < reach1) & (fjord1 > 0.3)) | ((y_factor < reach2) & (fjord2 > 0.4))
    skerry = (fjord_noise1.sample(ctx.tx / 20, ctx.ty / 20) > 0.7) & (y_factor > 0.15)
    fjord_value = np.where(skerry, 0.6, 0.0)

    coast_detail = fjord_noise1.sample(x_norm * 15, y_factor * 2) * 0.15
    ruffle = fjord_noise2.sample(x_norm * 20, y_factor * 10) * 0.2
    small_bay = (y_factor < 0.3) & (ruffle > 0.15)

    land = np.clip(base_land + coast_detail + ctx.variation * 0.1, 0.0, 1.0)
    land = np.where(small_bay, 0.0, land)
    return np.where(in_fjord, fjord_value, land)


# ── Lake shapes ──────────────────────────────────────────────────


def inland_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Solid land with lakes wherever low-frequency noise dips below a threshold.

    The threshold rises with ``water_coverage``: 0 gives no lakes, 1 floods
    nearly everything.  Values are binary (0 lake, 1 land).
    """
    lake_noise = PerlinNoise(ctx.rng)
    lake_detail = PerlinNoise(ctx.rng)

    nx = ctx.wx / ctx.width
    ny = ctx.wy / ctx.height

    combined = lake_noise.sample(nx * 3, ny * 3) + lake_detail.sample(nx * 10, ny * 10) * 0.2
    threshold = ctx.water_coverage * 2.4 - 1.2

    return np.where(combined < threshold, 0.0, 1.0)


def great_lake_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Inverted island: a large central lake, sized by ``water_coverage``."""
    shape_noise = PerlinNoise(ctx.rng)
    island_noise = PerlinNoise(ctx.rng)

    radius = 0.2 + ctx.water_coverage * 0.5
    boundary = radius + shape_noise.sample(ctx.wx / 150, ctx.wy / 150) * 0.2

    islands = np.where(island_noise.sample(ctx.wx / 50, ctx.wy / 50) > 0.6, 1.0, 0.0)
    shore = smootherstep(boundary, boundary + 0.1, ctx.normalized_dist)

    return np.where(ctx.normalized_dist < boundary, islands, shore)


def atoll_mask(ctx: MaskContext) -> NDArray[np.float64]:
    """Broken ring of islets around a central lagoon."""
    break_noise = PerlinNoise(ctx.rng)
    islet_noise = PerlinNoise(ctx.rng)

    angle = np.arctan2(ctx.wy - ctx.height / 2, ctx.wx - ctx.width / 2)
    ring_dist = np.abs(ctx.normalized_dist - ATOLL_RING_RADIUS)

    angular_break = break_noise.sample(np.cos(angle) * 2, np.sin(angle) * 2)
    gap = angular_break < -0.1 + ctx.variation * 0.2

    ring_strength = 1.0 - ring_dist / ATOLL_RING_WIDTH
    islets = np.where(islet_noise.sample(ctx.wx / 30, ctx.wy / 30) > 0.3, 0.3, 0.0)
    ring = np.clip((angular_break + 0.5) * ring_strength + islets, 0.0, 1.0)

    ring = np.where(gap, 0.0, ring)
    return np.where(ring_dist < ATOLL_RING_WIDTH, ring, 0.0)


# ── Mask registry ────────────────────────────────────────────────

_MASK_REGISTRY: dict[MapType, MaskFn] = {
    MapType.ISLAND: island_mask,
    MapType.ARCHIPELAGO: archipelago_mask,
    MapType.PENINSULA: peninsula_mask,
    MapType.CONTINENT: continent_mask,
    MapType.INLAND: inland_mask,
    MapType.COASTAL: coastal_mask,
    MapType.ISTHMUS: isthmus_mask,
    MapType.ATOLL: atoll_mask,
    MapType.DELTA: delta_mask,
    MapType.FJORD: fjord_mask,
    MapType.GREAT_LAKE: great_lake_mask,
}


def register_mask(map_type: MapType | str, mask_fn: MaskFn) -> None:
    """Register (or replace) the mask function for a map type."""
    _MASK_REGISTRY[_coerce_map_type(map_type)] = mask_fn


def get_mask(map_type: MapType | str) -> MaskFn:
    """Return the mask function for *map_type*."""
    key = _coerce_map_type(map_type)
    try:
        return _MASK_REGISTRY[key]
    except KeyError as exc:
        raise ConfigurationError(f"No landmass mask registered for {key!r}") from exc


def available_masks() -> list[MapType]:
    return list(_MASK_REGISTRY)


def _coerce_map_type(map_type: MapType | str) -> MapType:
    try:
        return MapType(map_type)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown map type: {map_type!r}") from exc


def apply_landmass_mask(ctx: MaskContext, map_type: MapType | str) -> NDArray[np.float64]:
    """Evaluate the landmass mask for *map_type* over the whole grid.

    This is the main entry point called by the heightmap synthesizer.  It
    looks up the registered mask, carves inland lakes into deep-inland
    cells of the large landmass types, and clamps the result to [0, 1].

    Args:
        ctx: Precomputed coordinate grids and the stage PRNG.
        map_type: Landmass shape to apply.

    Returns:
        Mask grid shaped ``(height, width)`` in [0, 1].
    """
    key = _coerce_map_type(map_type)
    mask_fn = get_mask(key)

    # Edge functions divide by widths that can reach zero in cells the
    # shape then discards through np.where.
    with np.errstate(divide="ignore", invalid="ignore"):
        mask = np.asarray(mask_fn(ctx), dtype=np.float64)

        if key in LAKE_CARVE_TYPES:
            lakes = inland_mask(ctx)
            carve = (mask > LAKE_CARVE_THRESHOLD) & (lakes < 0.1)
            mask = np.where(carve, mask * 0.3, mask)

    return np.clip(np.nan_to_num(mask, nan=0.0), 0.0, 1.0)

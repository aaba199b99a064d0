"""Settlement placement.

Each cell gets a suitability score from terrain, water access and biome.
Settlements are then drawn one at a time by weighted random choice over a
coarse candidate lattice, keeping a minimum spacing between them.  Size
and type follow from the chosen site.
"""

import logging
import math

import numpy as np
from numpy.typing import NDArray

from realmgen.models import (
    SETTLEMENT_POPULATIONS,
    Biome,
    SettlementSize,
    SettlementType,
)
from realmgen.rng import SeededRandom, stage_rng
from realmgen.types import River, Settlement

logger = logging.getLogger(__name__)

RIVER_INFLUENCE_RADIUS = 10
MIN_SUITABILITY = 0.3
MAJOR_RIVER_LENGTH = 20  # Samples

MOUTH_DISTANCE = 20
MAJOR_RIVER_SIZE_DISTANCE = 15
MAJOR_RIVER_TYPE_DISTANCE = 10
MOUNTAIN_TOWN_ELEVATION = 0.6

MIN_SETTLEMENTS = 3
MAX_SETTLEMENTS = 100

# (threshold, tier) checked top down; anything at or below 0.3 is a thorp
SIZE_THRESHOLDS: list[tuple[float, SettlementSize]] = [
    (0.9, SettlementSize.METROPOLIS),
    (0.8, SettlementSize.LARGE_CITY),
    (0.7, SettlementSize.SMALL_CITY),
    (0.6, SettlementSize.LARGE_TOWN),
    (0.5, SettlementSize.SMALL_TOWN),
    (0.4, SettlementSize.VILLAGE),
    (0.3, SettlementSize.HAMLET),
]

UNINHABITABLE = (Biome.OCEAN, Biome.MOUNTAIN, Biome.SNOW)


# ── Suitability ─────────────────────────────────────────────────


def river_proximity(
    width: int,
    height: int,
    rivers: list[River],
    radius: int = RIVER_INFLUENCE_RADIUS,
) -> NDArray[np.float64]:
    """Closeness to the nearest river sample, 1 on the river falling to 0 at *radius*."""
    proximity = np.zeros((height, width), dtype=np.float64)

    offsets = np.arange(-radius, radius + 1)
    dx, dy = np.meshgrid(offsets, offsets)
    kernel = np.maximum(0.0, 1.0 - np.sqrt(dx * dx + dy * dy) / radius)

    for river in rivers:
        for point in river.points:
            cx, cy = point.cell
            x0, x1 = max(0, cx - radius), min(width, cx + radius + 1)
            y0, y1 = max(0, cy - radius), min(height, cy + radius + 1)
            if x0 >= x1 or y0 >= y1:
                continue
            patch = kernel[y0 - cy + radius:y1 - cy + radius, x0 - cx + radius:x1 - cx + radius]
            np.maximum(proximity[y0:y1, x0:x1], patch, out=proximity[y0:y1, x0:x1])

    return proximity


def coastal_cells(biomes: NDArray[np.uint8]) -> NDArray[np.bool_]:
    """Non-ocean cells with at least one ocean 8-neighbour."""
    ocean = biomes == Biome.OCEAN
    padded = np.pad(ocean, 1, mode="constant", constant_values=False)
    h, w = ocean.shape

    touches_ocean = np.zeros_like(ocean)
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx == 0 and dy == 0:
                continue
            touches_ocean |= padded[1 + dy:1 + dy + h, 1 + dx:1 + dx + w]

    return touches_ocean & ~ocean


def calculate_suitability(
    heightmap: NDArray[np.float64],
    moisture: NDArray[np.float64],
    biomes: NDArray[np.uint8],
    rivers: list[River],
) -> NDArray[np.float64]:
    """Per-cell settlement suitability in [0, 1].

    Moderate elevation, rivers, coastline and moisture all help; beaches
    get an extra bonus as harbour sites.  Ocean, mountain and snow cells
    score 0.
    """
    h, w = heightmap.shape
    rivers_near = river_proximity(w, h, rivers)
    coast = coastal_cells(biomes).astype(np.float64)

    score = (
        0.5
        + (1.0 - np.abs(heightmap - 0.4) * 2.0) * 0.2
        + rivers_near * 0.3
        + coast * 0.25
        + moisture * 0.1
        + np.where(biomes == Biome.BEACH, 0.15, 0.0)
    )
    score = np.clip(score, 0.0, 1.0)
    return np.where(np.isin(biomes, UNINHABITABLE), 0.0, score)


# ── Placement ───────────────────────────────────────────────────


def settlement_target(land_cells: int, area: int, density: float) -> int:
    """Number of settlements to aim for, always between 3 and 100."""
    base = math.floor(land_cells / area * density * 50)
    return max(MIN_SETTLEMENTS, min(base, MAX_SETTLEMENTS))


def minimum_spacing(area: int, target: int) -> float:
    """Minimum distance between any two settlements."""
    return math.sqrt(area / target) * 0.5


def find_settlement_location(
    suitability: NDArray[np.float64],
    placed: list[tuple[int, int]],
    min_distance: float,
    rng: SeededRandom,
) -> tuple[int, int] | None:
    """Weighted random pick over lattice cells that are suitable and far enough from *placed*.

    Weights are the squared suitability.  Returns None when no candidate
    remains.
    """
    h, w = suitability.shape
    step = max(2, w // 100)

    candidates: list[tuple[int, int, float]] = []
    for y in range(step, h - step, step):
        for x in range(step, w - step, step):
            score = float(suitability[y, x])
            if score < MIN_SUITABILITY:
                continue
            if any(math.hypot(x - px, y - py) < min_distance for px, py in placed):
                continue
            candidates.append((x, y, score * score))

    if not candidates:
        return None

    remaining = rng.next() * sum(weight for _, _, weight in candidates)
    for x, y, weight in candidates:
        remaining -= weight
        if remaining <= 0:
            return x, y

    x, y, _ = candidates[-1]
    return x, y


# ── Classification ──────────────────────────────────────────────


def near_river_mouth(x: int, y: int, rivers: list[River], max_distance: float) -> bool:
    for river in rivers:
        if not river.points:
            continue
        mouth = river.mouth
        if math.hypot(x - mouth.x, y - mouth.y) < max_distance:
            return True
    return False


def near_major_river(x: int, y: int, rivers: list[River], max_distance: float) -> bool:
    for river in rivers:
        if len(river.points) < MAJOR_RIVER_LENGTH:
            continue
        if any(math.hypot(x - p.x, y - p.y) < max_distance for p in river.points):
            return True
    return False


def determine_size(
    x: int,
    y: int,
    suitability: NDArray[np.float64],
    biomes: NDArray[np.uint8],
    rivers: list[River],
    rng: SeededRandom,
) -> SettlementSize:
    """Size tier from site quality plus a random nudge."""
    size_score = float(suitability[y, x])
    if near_river_mouth(x, y, rivers, MOUTH_DISTANCE):
        size_score += 0.3
    if biomes[y, x] == Biome.BEACH:
        size_score += 0.2
    if near_major_river(x, y, rivers, MAJOR_RIVER_SIZE_DISTANCE):
        size_score += 0.15

    size_score += (rng.next() - 0.5) * 0.3

    for threshold, size in SIZE_THRESHOLDS:
        if size_score > threshold:
            return size
    return SettlementSize.THORP


def determine_type(
    x: int,
    y: int,
    heightmap: NDArray[np.float64],
    biomes: NDArray[np.uint8],
    rivers: list[River],
) -> SettlementType:
    if biomes[y, x] == Biome.BEACH:
        return SettlementType.PORT
    if near_major_river(x, y, rivers, MAJOR_RIVER_TYPE_DISTANCE):
        return SettlementType.RIVER_TOWN
    if heightmap[y, x] > MOUNTAIN_TOWN_ELEVATION:
        return SettlementType.MOUNTAIN_TOWN
    return SettlementType.FARMING_VILLAGE


def generate_population(size: SettlementSize, rng: SeededRandom) -> int:
    lo, hi = SETTLEMENT_POPULATIONS[size]
    return rng.int(lo, hi)


def generate_settlements(
    heightmap: NDArray[np.float64],
    moisture: NDArray[np.float64],
    biomes: NDArray[np.uint8],
    rivers: list[River],
    seed: str,
    sea_level: float,
    density: float,
) -> list[Settlement]:
    """Place settlements on the finished terrain.

    Args:
        heightmap: Elevation grid (after river carving, if any)
        moisture: Moisture grid
        biomes: Biome id grid
        rivers: Accepted rivers
        seed: Master seed; the stage draws from ``<seed>_settlements``
        sea_level: Ocean threshold
        density: 0-1 scale on the settlement count

    Returns:
        Settlements ordered by population, largest first
    """
    rng = stage_rng(seed, "settlements")
    h, w = heightmap.shape

    suitability = calculate_suitability(heightmap, moisture, biomes, rivers)

    area = w * h
    land_cells = int(np.count_nonzero(biomes != Biome.OCEAN))
    target = settlement_target(land_cells, area, density)
    min_distance = minimum_spacing(area, target)

    settlements: list[Settlement] = []
    placed: list[tuple[int, int]] = []

    for _ in range(target * 10):
        if len(settlements) >= target:
            break

        location = find_settlement_location(suitability, placed, min_distance, rng)
        if location is None:
            break

        x, y = location
        size = determine_size(x, y, suitability, biomes, rivers, rng)
        settlement_id = rng.token()
        settlements.append(Settlement(
            id=settlement_id,
            x=x,
            y=y,
            size=size,
            population=generate_population(size, rng),
            type=determine_type(x, y, heightmap, biomes, rivers),
        ))
        placed.append(location)

    settlements.sort(key=lambda s: s.population, reverse=True)

    logger.debug(
        "Settlements: %d of %d placed (min spacing %.1f, sea level %.2f)",
        len(settlements), target, min_distance, sea_level,
    )
    return settlements

"""River generation: source selection, descent tracing and carving.

Rivers start at high, wet cells and follow the steepest downhill
neighbour until they reach the sea.  Local minima are escaped with a
short breadth-first search for lower ground.  Every accepted river
claims its cells exclusively, so later rivers stop when they run into
an earlier one.
"""

import logging
from collections import deque
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from realmgen.models import RiverTermination
from realmgen.rng import SeededRandom, stage_rng
from realmgen.types import River, RiverPoint

logger = logging.getLogger(__name__)

# 8-connected neighbour offsets in their unshuffled order
NEIGHBOURS_8 = [(-1, 0), (1, 0), (0, -1), (0, 1), (-1, -1), (1, -1), (-1, 1), (1, 1)]
NEIGHBOURS_4 = [(-1, 0), (1, 0), (0, -1), (0, 1)]

SOURCE_MIN_ELEVATION_OFFSET = 0.3  # Sources lie this far above sea level
SOURCE_MAX_ELEVATION = 0.9
ESCAPE_MAX_DEPTH = 20
POSITION_JITTER = 0.3
CARVE_DEPTH = 0.02
FLOW_AT_SOURCE = 0.3


@dataclass
class RiverSource:
    """Candidate river source cell."""

    x: int
    y: int
    score: float


def find_river_sources(
    heightmap: NDArray[np.float64],
    moisture: NDArray[np.float64],
    sea_level: float,
    rng: SeededRandom,
    count: int,
) -> list[RiverSource]:
    """Pick up to *count* source cells, best first.

    The grid is sampled on a fixed stride.  Cells well above sea level but
    below the peaks qualify; the score favours height and moisture plus a
    little random jitter.
    """
    h, w = heightmap.shape
    step = max(4, w // 50)
    low = sea_level + SOURCE_MIN_ELEVATION_OFFSET

    candidates: list[RiverSource] = []
    for y in range(step, h - step, step):
        for x in range(step, w - step, step):
            elevation = float(heightmap[y, x])
            if low < elevation < SOURCE_MAX_ELEVATION:
                score = elevation * 0.5 + float(moisture[y, x]) * 0.5 + rng.next() * 0.2
                candidates.append(RiverSource(x=x, y=y, score=score))

    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates[:count]


def find_steepest_descent(
    heightmap: NDArray[np.float64],
    x: int,
    y: int,
    rng: SeededRandom,
) -> tuple[int, int] | None:
    """Lowest strictly-lower 8-neighbour of (x, y), or None at a local minimum.

    Neighbours are visited in shuffled order so exact ties do not always
    resolve in the same direction.
    """
    h, w = heightmap.shape
    lowest = float(heightmap[y, x])
    best: tuple[int, int] | None = None

    for dx, dy in rng.shuffle(list(NEIGHBOURS_8)):
        nx = x + dx
        ny = y + dy
        if nx < 0 or nx >= w or ny < 0 or ny >= h:
            continue
        neighbour = float(heightmap[ny, nx])
        if neighbour < lowest:
            lowest = neighbour
            best = (nx, ny)

    return best


def escape_local_minimum(
    heightmap: NDArray[np.float64],
    x: int,
    y: int,
    sea_level: float,
    blocked: set[tuple[int, int]] | frozenset[tuple[int, int]] = frozenset(),
    max_depth: int = ESCAPE_MAX_DEPTH,
) -> list[tuple[int, int]] | None:
    """Breadth-first search for lower ground near a local minimum.

    Searches 4-connected interior cells up to *max_depth* steps away for
    one lower than the start or below sea level.  Cells in *blocked* are
    never walked through, though one may still be returned as the target.

    Returns:
        The path from the first step to the target (start excluded), or
        None if nothing lower is in reach
    """
    h, w = heightmap.shape
    start_height = float(heightmap[y, x])

    queue: deque[tuple[int, int, int]] = deque([(x, y, 0)])
    parents: dict[tuple[int, int], tuple[int, int] | None] = {(x, y): None}

    while queue:
        cx, cy, depth = queue.popleft()
        cell_height = float(heightmap[cy, cx])

        if (cx, cy) != (x, y):
            if cell_height < start_height or cell_height < sea_level:
                path = [(cx, cy)]
                parent = parents[(cx, cy)]
                while parent is not None and parent != (x, y):
                    path.append(parent)
                    parent = parents[parent]
                path.reverse()
                return path
            if (cx, cy) in blocked:
                continue

        if depth >= max_depth:
            continue

        for dx, dy in NEIGHBOURS_4:
            nx = cx + dx
            ny = cy + dy
            if nx < 1 or nx >= w - 1 or ny < 1 or ny >= h - 1:
                continue
            if (nx, ny) in parents:
                continue
            parents[(nx, ny)] = (cx, cy)
            queue.append((nx, ny, depth + 1))

    return None


def trace_river(
    heightmap: NDArray[np.float64],
    start_x: int,
    start_y: int,
    sea_level: float,
    claimed: set[tuple[int, int]],
    rng: SeededRandom,
) -> tuple[list[RiverPoint], RiverTermination]:
    """Walk downhill from a source until the sea or a stopping condition.

    Args:
        heightmap: Elevation grid
        start_x, start_y: Source cell
        sea_level: Ocean threshold
        claimed: Cells already owned by accepted rivers (not modified)
        rng: Stage PRNG for tie-breaking and position jitter

    Returns:
        ``(points, reason)``; consecutive points always occupy 8-adjacent
        cells and elevation strictly falls along the path except across
        an escape detour
    """
    h, w = heightmap.shape
    max_steps = w + h

    points: list[RiverPoint] = []
    own: set[tuple[int, int]] = set()
    x, y = start_x, start_y
    px, py = float(x), float(y)

    for _ in range(max_steps):
        if x < 1 or x >= w - 1 or y < 1 or y >= h - 1:
            return points, RiverTermination.EDGE
        if (x, y) in claimed:
            return points, RiverTermination.CONFLUENCE

        points.append(RiverPoint(px, py))
        own.add((x, y))

        if heightmap[y, x] < sea_level:
            return points, RiverTermination.SEA

        step = find_steepest_descent(heightmap, x, y, rng)
        if step is None:
            detour = escape_local_minimum(heightmap, x, y, sea_level, blocked=claimed | own)
            if detour is None:
                return points, RiverTermination.STUCK
            for cx, cy in detour[:-1]:
                points.append(RiverPoint(float(cx), float(cy)))
                own.add((cx, cy))
            x, y = detour[-1]
            px, py = float(x), float(y)
        else:
            x, y = step
            px = x + (rng.next() - 0.5) * POSITION_JITTER
            py = y + (rng.next() - 0.5) * POSITION_JITTER

    return points, RiverTermination.BUDGET


def assign_flow(river: River) -> None:
    """Linear flow proxy: 0.3 at the source rising to 1.0 at the mouth."""
    last = len(river.points) - 1
    for i, point in enumerate(river.points):
        if last == 0:
            point.flow = 1.0
            continue
        point.flow = FLOW_AT_SOURCE + (i / last) * (1.0 - FLOW_AT_SOURCE)


def generate_rivers(
    heightmap: NDArray[np.float64],
    moisture: NDArray[np.float64],
    seed: str,
    sea_level: float,
    river_count: int,
    min_river_length: int = 15,
) -> list[River]:
    """Trace up to *river_count* rivers.

    Three times as many sources as needed are tried, best first.  A trace
    shorter than *min_river_length* samples is discarded; otherwise its
    cells are claimed and it becomes a river.

    Args:
        heightmap: Elevation grid (not modified)
        moisture: Moisture grid used to score sources
        seed: Master seed; the stage draws from ``<seed>_rivers``
        sea_level: Ocean threshold
        river_count: Maximum rivers to accept
        min_river_length: Minimum samples per accepted river

    Returns:
        Accepted rivers in acceptance order
    """
    rng = stage_rng(seed, "rivers")
    sources = find_river_sources(heightmap, moisture, sea_level, rng, river_count * 3)

    rivers: list[River] = []
    claimed: set[tuple[int, int]] = set()
    rejected = 0

    for source in sources:
        if len(rivers) >= river_count:
            break

        points, reason = trace_river(heightmap, source.x, source.y, sea_level, claimed, rng)
        if len(points) < min_river_length:
            rejected += 1
            continue

        river = River(id=rng.token(), points=points, terminated=reason)
        claimed.update(river.cells())
        rivers.append(river)

    for river in rivers:
        assign_flow(river)

    logger.debug(
        "Rivers: %d sources, %d accepted, %d too short",
        len(sources), len(rivers), rejected,
    )
    return rivers


def carve_rivers(
    heightmap: NDArray[np.float64],
    rivers: list[River],
    depth: float = CARVE_DEPTH,
) -> None:
    """Lower the heightmap along each river in place, deeper toward the mouth."""
    h, w = heightmap.shape
    for river in rivers:
        for point in river.points:
            x, y = point.cell
            if 0 <= x < w and 0 <= y < h:
                heightmap[y, x] = max(0.0, heightmap[y, x] - depth * point.flow)

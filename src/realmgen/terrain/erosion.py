"""Hydraulic and thermal erosion.

The hydraulic pass simulates water droplets that pick up sediment on
downhill runs and drop it when they slow down or climb.  Droplets are
processed one after another against the shared heightmap; each droplet
sees the terrain left behind by all previous ones.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from realmgen.mathutils import bilinear_sample, gradient
from realmgen.rng import stage_rng

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErosionOptions:
    """Tuning constants for the droplet simulation."""

    erosion_rate: float = 0.3
    deposition_rate: float = 0.3
    evaporation_rate: float = 0.02
    sediment_capacity: float = 4.0
    min_slope: float = 0.01
    inertia: float = 0.3
    max_steps: int = 64
    radius: int = 2
    min_water: float = 0.01


def _brush(radius: int) -> list[tuple[int, int, float]]:
    """Offsets and linear falloff weights for the erosion disc."""
    offsets = []
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            dist = math.sqrt(dx * dx + dy * dy)
            if dist <= radius:
                offsets.append((dx, dy, max(0.0, radius - dist) / radius))
    return offsets


def _deposit(grid: list[float], x: float, y: float, width: int, height: int, amount: float) -> None:
    """Spread *amount* bilinearly over the four cells around (x, y)."""
    x0 = int(x)
    y0 = int(y)
    x1 = min(x0 + 1, width - 1)
    y1 = min(y0 + 1, height - 1)
    fx = x - x0
    fy = y - y0

    grid[y0 * width + x0] += amount * (1 - fx) * (1 - fy)
    grid[y0 * width + x1] += amount * fx * (1 - fy)
    grid[y1 * width + x0] += amount * (1 - fx) * fy
    grid[y1 * width + x1] += amount * fx * fy


def _erode(
    grid: list[float],
    x: float,
    y: float,
    width: int,
    height: int,
    amount: float,
    brush: list[tuple[int, int, float]],
) -> None:
    """Remove *amount* from the disc around (x, y), weighted by distance."""
    if amount <= 0.0:
        return
    x0 = int(x)
    y0 = int(y)

    cells = []
    total_weight = 0.0
    for dx, dy, weight in brush:
        nx = x0 + dx
        ny = y0 + dy
        if 0 <= nx < width and 0 <= ny < height:
            cells.append((ny * width + nx, weight))
            total_weight += weight

    if total_weight <= 0.0:
        return
    for idx, weight in cells:
        grid[idx] -= amount * (weight / total_weight)


def apply_hydraulic_erosion(
    heightmap: NDArray[np.float64],
    seed: str,
    iterations: int | None = None,
    options: ErosionOptions | None = None,
) -> NDArray[np.float64]:
    """Run the droplet simulation on *heightmap* in place.

    Args:
        heightmap: Elevation grid shaped ``(height, width)``, modified in place
        seed: Master seed; the stage draws from ``<seed>_erosion``
        iterations: Number of droplets (defaults to 10% of the cell count)
        options: Simulation constants

    Returns:
        The same array, min-max normalised back to [0, 1]
    """
    opts = options or ErosionOptions()
    h, w = heightmap.shape
    if iterations is None:
        iterations = int(w * h * 0.1)

    rng = stage_rng(seed, "erosion")
    brush = _brush(opts.radius)
    grid = heightmap.ravel().tolist()

    steps_taken = 0
    for _ in range(iterations):
        x = rng.range(0, w - 1)
        y = rng.range(0, h - 1)
        dir_x = 0.0
        dir_y = 0.0
        speed = 1.0
        water = 1.0
        sediment = 0.0

        for _step in range(opts.max_steps):
            cell_x = math.floor(x)
            cell_y = math.floor(y)
            if cell_x < 0 or cell_x >= w - 1 or cell_y < 0 or cell_y >= h - 1:
                break

            grad_x, grad_y = gradient(grid, cell_x, cell_y, w, h)

            dir_x = dir_x * opts.inertia - grad_x * (1 - opts.inertia)
            dir_y = dir_y * opts.inertia - grad_y * (1 - opts.inertia)
            length = math.sqrt(dir_x * dir_x + dir_y * dir_y)
            if length > 0:
                dir_x /= length
                dir_y /= length
            else:
                angle = rng.range(0, math.pi * 2)
                dir_x = math.cos(angle)
                dir_y = math.sin(angle)

            new_x = x + dir_x
            new_y = y + dir_y
            if new_x < 0 or new_x >= w - 1 or new_y < 0 or new_y >= h - 1:
                break

            old_height = bilinear_sample(grid, x, y, w, h)
            new_height = bilinear_sample(grid, new_x, new_y, w, h)
            delta = new_height - old_height

            slope = max(-delta, opts.min_slope)
            capacity = max(slope * speed * water * opts.sediment_capacity, 0.0)

            if sediment > capacity or delta > 0:
                if delta > 0:
                    amount = min(sediment, delta)
                else:
                    amount = (sediment - capacity) * opts.deposition_rate
                sediment -= amount
                _deposit(grid, x, y, w, h, amount)
            else:
                amount = min((capacity - sediment) * opts.erosion_rate, -delta)
                sediment += amount
                _erode(grid, x, y, w, h, amount, brush)

            speed = math.sqrt(max(0.0, speed * speed + delta))
            water *= 1 - opts.evaporation_rate
            steps_taken += 1

            if water < opts.min_water:
                break

            x = new_x
            y = new_y

    eroded = np.asarray(grid, dtype=np.float64).reshape(h, w)
    low = float(eroded.min())
    span = float(eroded.max()) - low
    if span == 0.0:
        span = 1.0
    heightmap[...] = np.clip((eroded - low) / span, 0.0, 1.0)

    logger.debug("Hydraulic erosion: %d droplets, %d steps", iterations, steps_taken)
    return heightmap


def apply_thermal_erosion(
    heightmap: NDArray[np.float64],
    iterations: int = 10,
    talus_angle: float = 0.5,
) -> NDArray[np.float64]:
    """Slide material off slopes steeper than *talus_angle*, in place.

    Each interior cell moves half of its excess slope to its single
    steepest lower 4-neighbour.  Cells are scanned in row-major order and
    see updates made earlier in the same pass.
    """
    h, w = heightmap.shape
    grid = heightmap.ravel().tolist()

    for _ in range(iterations):
        for y in range(1, h - 1):
            row = y * w
            for x in range(1, w - 1):
                idx = row + x
                current = grid[idx]
                max_diff = 0.0
                target = -1
                for n_idx in (idx - 1, idx + 1, idx - w, idx + w):
                    diff = current - grid[n_idx]
                    if diff > max_diff and diff > talus_angle:
                        max_diff = diff
                        target = n_idx
                if target >= 0:
                    transfer = (max_diff - talus_angle) * 0.5
                    grid[idx] -= transfer
                    grid[target] += transfer

    heightmap[...] = np.asarray(grid, dtype=np.float64).reshape(h, w)
    return heightmap

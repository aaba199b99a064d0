"""Small numeric helpers shared by the generation stages.

The easing helper accepts scalars or numpy arrays.  The gradient and
sampling helpers work on flat row-major lists for the per-cell loops.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import gaussian_filter


def smootherstep(edge0, edge1, x):
    """Perlin's smootherstep, 6t^5 - 15t^4 + 10t^3, clamped.

    Reversed edges (``edge0 > edge1``) give a falling curve, which several
    masks rely on for inward-facing edge fades.
    """
    t = np.clip((np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    result = t * t * t * (t * (t * 6.0 - 15.0) + 10.0)
    return result if result.ndim else float(result)


def gradient(grid: list[float], x: int, y: int, width: int, height: int) -> tuple[float, float]:
    """Central-difference gradient at an integer cell of a flat row-major grid.

    Border cells fall back to their own value for the missing neighbour.
    """
    idx = y * width + x
    centre = grid[idx]
    left = grid[idx - 1] if x > 0 else centre
    right = grid[idx + 1] if x < width - 1 else centre
    up = grid[idx - width] if y > 0 else centre
    down = grid[idx + width] if y < height - 1 else centre
    return (right - left) / 2.0, (down - up) / 2.0


def bilinear_sample(grid: list[float], x: float, y: float, width: int, height: int) -> float:
    """Bilinearly interpolated value of a flat row-major grid at (x, y)."""
    x0 = int(x)
    y0 = int(y)
    x1 = min(x0 + 1, width - 1)
    y1 = min(y0 + 1, height - 1)
    fx = x - x0
    fy = y - y0

    h00 = grid[y0 * width + x0]
    h10 = grid[y0 * width + x1]
    h01 = grid[y1 * width + x0]
    h11 = grid[y1 * width + x1]

    top = h00 * (1.0 - fx) + h10 * fx
    bottom = h01 * (1.0 - fx) + h11 * fx
    return top * (1.0 - fy) + bottom * fy


def gaussian_blur(field: NDArray[np.float64], radius: int) -> NDArray[np.float64]:
    """Separable Gaussian blur with edge clamping.

    The kernel spans ``radius`` cells each side with sigma = radius / 3,
    matching a normalised (2r+1)^2 kernel.
    """
    if radius <= 0:
        return field.copy()
    sigma = radius / 3.0
    return gaussian_filter(field, sigma=sigma, mode="nearest", truncate=radius / sigma)

"""Gradient noise for terrain generation.

The permutation table is drawn from a :class:`~realmgen.rng.SeededRandom`
so the noise field is reproducible from the map seed alone.  Sampling is
vectorised over numpy arrays; every call accepts scalars as well.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

from realmgen.rng import SeededRandom

# Eight gradient directions, indexed by the low three bits of the hash
_GRADIENTS = np.array(
    [(1, 1), (-1, 1), (1, -1), (-1, -1), (1, 0), (-1, 0), (0, 1), (0, -1)],
    dtype=np.float64,
)


def _fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


class PerlinNoise:
    """Deterministic 2D Perlin noise seeded from a PRNG stream."""

    def __init__(self, rng: SeededRandom) -> None:
        table = rng.shuffle(list(range(256)))
        self._perm = np.array(table + table, dtype=np.int64)

    def _corner(
        self, hashed: NDArray[np.int64], dx: NDArray[np.float64], dy: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        grad = _GRADIENTS[hashed & 7]
        return grad[..., 0] * dx + grad[..., 1] * dy

    def sample(self, x: ArrayLike, y: ArrayLike) -> NDArray[np.float64]:
        """Sample noise at arrays of coordinates. Returns values in [-1, 1].

        Lattice coordinates wrap every 256 units, so any finite input is
        valid, including negative and very large values.
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        x_floor = np.floor(x)
        y_floor = np.floor(y)
        xf = x - x_floor
        yf = y - y_floor
        xi = np.mod(x_floor, 256.0).astype(np.int64)
        yi = np.mod(y_floor, 256.0).astype(np.int64)

        p = self._perm
        aa = p[p[xi] + yi]
        ab = p[p[xi] + yi + 1]
        ba = p[p[xi + 1] + yi]
        bb = p[p[xi + 1] + yi + 1]

        u = _fade(xf)
        v = _fade(yf)

        n00 = self._corner(aa, xf, yf)
        n10 = self._corner(ba, xf - 1.0, yf)
        n01 = self._corner(ab, xf, yf - 1.0)
        n11 = self._corner(bb, xf - 1.0, yf - 1.0)

        nx0 = n00 + u * (n10 - n00)
        nx1 = n01 + u * (n11 - n01)
        return np.clip(nx0 + v * (nx1 - nx0), -1.0, 1.0)

    def sample_2d(self, x: float, y: float) -> float:
        """Sample noise at a single point. Returns value in [-1, 1]."""
        return float(self.sample(x, y))

    def octave_noise_2d(
        self,
        x: ArrayLike,
        y: ArrayLike,
        octaves: int = 6,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
        scale: float = 1.0,
    ) -> NDArray[np.float64]:
        """Generate fractal Brownian motion (fBm) noise.

        Args:
            x, y: Sample coordinates (scalars or arrays)
            octaves: Number of noise layers to combine
            persistence: Amplitude multiplier per octave
            lacunarity: Frequency multiplier per octave
            scale: Base frequency scale

        Returns:
            Noise values in [-1, 1]
        """
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
        amplitude = 1.0
        frequency = scale
        max_amplitude = 0.0

        for _ in range(octaves):
            total += amplitude * self.sample(x * frequency, y * frequency)
            max_amplitude += amplitude
            amplitude *= persistence
            frequency *= lacunarity

        if max_amplitude == 0.0:
            return total
        return total / max_amplitude


def grid_coordinates(width: int, height: int) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Cell coordinate grids shaped ``(height, width)`` for vectorised sampling."""
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(height, dtype=np.float64)
    return np.meshgrid(xs, ys)

"""Tests for gradient noise."""

import numpy as np

from realmgen.rng import SeededRandom
from realmgen.terrain.noise import PerlinNoise, grid_coordinates


def make_noise(seed: str = "noise") -> PerlinNoise:
    return PerlinNoise(SeededRandom(seed))


class TestPerlinNoise:
    """Tests for the PerlinNoise class."""

    def test_deterministic_output(self):
        """Same seed + coordinates should produce same value."""
        assert make_noise().sample_2d(10.5, 20.3) == make_noise().sample_2d(10.5, 20.3)

    def test_different_seeds_produce_different_values(self):
        """Different seeds should produce different fields."""
        xx, yy = grid_coordinates(16, 16)
        a = make_noise("one").sample(xx / 7, yy / 7)
        b = make_noise("two").sample(xx / 7, yy / 7)

        assert not np.array_equal(a, b)

    def test_value_range(self):
        """Noise values should be in [-1, 1] range."""
        xx, yy = grid_coordinates(100, 100)
        values = make_noise().sample(xx * 0.1, yy * 0.1)

        assert values.min() >= -1.0
        assert values.max() <= 1.0

    def test_zero_on_lattice_points(self):
        """Gradient noise vanishes at integer coordinates."""
        xx, yy = grid_coordinates(8, 8)
        values = make_noise().sample(xx, yy)

        assert np.allclose(values, 0.0)

    def test_wraps_every_256_units(self):
        """The field repeats with period 256, including negative coordinates."""
        noise = make_noise()

        assert noise.sample_2d(3.25, 7.75) == noise.sample_2d(259.25, 7.75)
        assert noise.sample_2d(3.25, 7.75) == noise.sample_2d(3.25, 7.75 - 256.0)

    def test_vectorised_matches_scalar(self):
        """Array sampling should agree with point sampling."""
        noise = make_noise()
        xs = np.array([0.3, 12.7, -4.1, 100.9])
        ys = np.array([5.5, 0.2, 33.3, -8.6])
        batch = noise.sample(xs, ys)

        for i in range(len(xs)):
            assert batch[i] == noise.sample_2d(xs[i], ys[i])

    def test_not_constant(self):
        """Off-lattice samples should vary."""
        xx, yy = grid_coordinates(32, 32)
        values = make_noise().sample(xx / 5 + 0.5, yy / 5 + 0.5)

        assert values.std() > 0.05

    def test_octave_noise_range(self):
        """Octave noise should also be in [-1, 1] range."""
        xx, yy = grid_coordinates(50, 50)
        values = make_noise().octave_noise_2d(xx * 0.1, yy * 0.1, octaves=6)

        assert values.shape == (50, 50)
        assert values.min() >= -1.0
        assert values.max() <= 1.0

    def test_octave_single_layer_matches_sample(self):
        """One octave at unit scale is plain noise."""
        noise = make_noise()
        xs = np.linspace(0.1, 9.9, 20)

        assert np.allclose(noise.octave_noise_2d(xs, xs, octaves=1), noise.sample(xs, xs))


def test_grid_coordinates_shape():
    """Coordinate grids are shaped (height, width) with x varying along columns."""
    xx, yy = grid_coordinates(5, 3)

    assert xx.shape == (3, 5)
    assert xx[0, 4] == 4.0
    assert yy[2, 0] == 2.0

"""Tests for shared numeric helpers."""

import numpy as np
import pytest

from realmgen.mathutils import bilinear_sample, gaussian_blur, gradient, smootherstep


class TestSmootherstep:
    """Tests for the quintic easing curve."""

    def test_endpoints_and_midpoint(self):
        """Curve should hit 0, 0.5 and 1 at the edges and centre."""
        assert smootherstep(0.0, 1.0, 0.0) == 0.0
        assert smootherstep(0.0, 1.0, 0.5) == pytest.approx(0.5)
        assert smootherstep(0.0, 1.0, 1.0) == 1.0

    def test_clamped(self):
        """Inputs outside the edges clamp."""
        assert smootherstep(0.0, 1.0, -3.0) == 0.0
        assert smootherstep(0.0, 1.0, 7.0) == 1.0

    def test_reversed_edges_fall(self):
        """Swapped edges give a falling curve."""
        assert smootherstep(1.0, 0.0, 0.0) == 1.0
        assert smootherstep(1.0, 0.0, 1.0) == 0.0

    def test_scalar_and_array(self):
        """Scalars return floats and arrays return arrays."""
        assert isinstance(smootherstep(0.0, 1.0, 0.25), float)
        assert smootherstep(0.0, 1.0, np.array([0.0, 1.0])).shape == (2,)


class TestGridHelpers:
    """Tests for flat-grid gradient and interpolation."""

    def test_gradient_interior(self):
        """Central differences on a plane recover its slope."""
        width, height = 5, 4
        grid = [x * 0.1 + y * 0.3 for y in range(height) for x in range(width)]

        gx, gy = gradient(grid, 2, 1, width, height)

        assert gx == pytest.approx(0.1)
        assert gy == pytest.approx(0.3)

    def test_gradient_border(self):
        """Border cells use their own value for the missing neighbour."""
        width, height = 3, 3
        grid = [float(x) for _ in range(height) for x in range(width)]

        gx, _ = gradient(grid, 0, 1, width, height)

        assert gx == pytest.approx(0.5)

    def test_bilinear_sample(self):
        """Interpolation between four corners."""
        grid = [0.0, 1.0, 2.0, 3.0]

        assert bilinear_sample(grid, 0.0, 0.0, 2, 2) == 0.0
        assert bilinear_sample(grid, 0.5, 0.5, 2, 2) == pytest.approx(1.5)
        assert bilinear_sample(grid, 1.0, 0.25, 2, 2) == pytest.approx(1.5)


class TestGaussianBlur:
    """Tests for the climate smoothing blur."""

    def test_preserves_constant_field(self):
        """A constant field is unchanged by blurring."""
        field = np.full((10, 10), 0.4)

        assert gaussian_blur(field, 3) == pytest.approx(field)

    def test_smooths_spike(self):
        """A spike spreads out and keeps its total."""
        field = np.zeros((21, 21))
        field[10, 10] = 1.0

        blurred = gaussian_blur(field, 3)

        assert blurred[10, 10] < 1.0
        assert blurred[10, 11] > 0.0
        assert blurred[10, 15] == 0.0
        assert blurred.sum() == pytest.approx(1.0)

    def test_zero_radius_copies(self):
        """Zero radius returns an unblurred copy."""
        field = np.arange(9, dtype=np.float64).reshape(3, 3)
        blurred = gaussian_blur(field, 0)

        assert np.array_equal(blurred, field)
        assert blurred is not field

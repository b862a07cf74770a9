"""Tests for RMS equalization and the local similarity filter."""

import numpy as np
import pytest

from gwarp.utils.validation import DegenerateInputError, ShapeMismatchError
from gwarp.warping.rms_filter import (
    equalize,
    local_similarity_filter,
    rms,
    similarity_weights,
)


class TestRms:
    def test_known_value(self):
        assert rms(np.array([3.0, -3.0, 3.0, -3.0])) == pytest.approx(3.0)

    def test_empty(self):
        assert rms(np.array([], dtype=np.float32)) == 0.0


class TestEqualize:
    def test_matches_target_rms(self, rng):
        x = rng.standard_normal((2, 3, 40)).astype(np.float32)
        y = 5.0 * rng.standard_normal((2, 3, 40)).astype(np.float32)
        z = equalize(x, y)
        assert rms(z) == pytest.approx(rms(y), rel=1e-5)
        assert z.dtype == np.float32

    def test_returns_new_array(self, rng):
        x = rng.standard_normal(20).astype(np.float32)
        original = x.copy()
        z = equalize(x, 2.0 * x)
        assert z is not x
        np.testing.assert_array_equal(x, original)

    def test_zero_energy_rejected(self):
        with pytest.raises(DegenerateInputError):
            equalize(np.zeros(10, dtype=np.float32), np.ones(10, dtype=np.float32))

    def test_non_finite_rejected(self):
        x = np.ones(10, dtype=np.float32)
        x[3] = np.nan
        with pytest.raises(DegenerateInputError):
            equalize(x, np.ones(10, dtype=np.float32))

    def test_degenerate_is_value_error(self):
        with pytest.raises(ValueError):
            equalize(np.zeros(4, dtype=np.float32), np.ones(4, dtype=np.float32))

    def test_silent_target_gives_zeros(self, rng):
        x = rng.standard_normal(10).astype(np.float32)
        np.testing.assert_array_equal(equalize(x, np.zeros(10, dtype=np.float32)), 0.0)


class TestSimilarityWeights:
    def test_equal_energies_near_one(self):
        xx = np.full(5, 10.0, dtype=np.float32)
        w = similarity_weights(xx, xx)
        np.testing.assert_allclose(w, 1.0, rtol=1e-6)

    def test_one_silent_gives_zero(self):
        w = similarity_weights(np.ones(3, dtype=np.float32), np.zeros(3, dtype=np.float32))
        np.testing.assert_array_equal(w, 0.0)

    def test_both_silent_gives_zero(self):
        z = np.zeros(3, dtype=np.float32)
        np.testing.assert_array_equal(similarity_weights(z, z), 0.0)

    def test_bounded(self, rng):
        xx = rng.random(100).astype(np.float32)
        yy = rng.random(100).astype(np.float32)
        w = similarity_weights(xx, yy)
        assert np.all(w >= 0.0)
        assert np.all(w <= 1.0)


class TestLocalSimilarityFilter:
    def test_identical_inputs_stay_identical(self, rng):
        x = rng.standard_normal((2, 3, 50)).astype(np.float32)
        xf, yf, w = local_similarity_filter(x, x.copy(), 3.0, three_d=False)
        np.testing.assert_allclose(xf, yf, rtol=1e-5, atol=1e-6)
        assert np.all(w > 0.99)

    def test_filtered_rms_equal(self, rng):
        x = rng.standard_normal((2, 3, 50)).astype(np.float32)
        y = 3.0 * rng.standard_normal((2, 3, 50)).astype(np.float32)
        xf, yf, _ = local_similarity_filter(x, y, 2.0, three_d=True)
        assert rms(xf) == pytest.approx(rms(yf), rel=1e-5)

    def test_inputs_not_mutated(self, rng):
        x = rng.standard_normal((1, 2, 30)).astype(np.float32)
        y = rng.standard_normal((1, 2, 30)).astype(np.float32)
        x0, y0 = x.copy(), y.copy()
        local_similarity_filter(x, y, 2.0, three_d=False)
        np.testing.assert_array_equal(x, x0)
        np.testing.assert_array_equal(y, y0)

    def test_2d_mode_does_not_mix_shots(self, rng):
        x = rng.standard_normal((2, 3, 40)).astype(np.float32)
        y = rng.standard_normal((2, 3, 40)).astype(np.float32)
        # Time-reversing shot 1 keeps the global RMS but changes its content
        x2, y2 = x.copy(), y.copy()
        x2[1] = x[1, :, ::-1]
        y2[1] = y[1, :, ::-1]

        _, _, w = local_similarity_filter(x, y, 2.0, three_d=False)
        _, _, w2 = local_similarity_filter(x2, y2, 2.0, three_d=False)
        np.testing.assert_allclose(w2[0], w[0], rtol=1e-5, atol=1e-6)

        _, _, w3d = local_similarity_filter(x, y, 2.0, three_d=True)
        _, _, w3d2 = local_similarity_filter(x2, y2, 2.0, three_d=True)
        assert not np.allclose(w3d2[0], w3d[0])

    def test_weights_low_where_energy_differs(self):
        x = np.zeros((1, 1, 200), dtype=np.float32)
        y = np.zeros((1, 1, 200), dtype=np.float32)
        t = np.arange(200)
        x[0, 0] = np.sin(t / 3.0)
        y[0, 0, :100] = np.sin(t[:100] / 3.0)
        y[0, 0, 100:] = 0.01 * np.sin(t[100:] / 3.0)
        _, _, w = local_similarity_filter(x, y, 4.0, three_d=False)
        assert w[0, 0, :80].mean() > 0.5
        assert w[0, 0, 120:].mean() < 0.1

    def test_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            local_similarity_filter(
                np.ones((1, 2, 10), dtype=np.float32), np.ones((1, 2, 11), dtype=np.float32), 1.0, False
            )

    def test_requires_3d(self):
        with pytest.raises(ValueError):
            local_similarity_filter(
                np.ones((2, 10), dtype=np.float32), np.ones((2, 10), dtype=np.float32), 1.0, False
            )

    def test_zero_energy_rejected(self):
        z = np.zeros((1, 2, 10), dtype=np.float32)
        with pytest.raises(DegenerateInputError):
            local_similarity_filter(z, np.ones_like(z), 1.0, False)

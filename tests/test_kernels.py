"""Tests for smoothing, interpolation and parallel kernels."""

import threading

import numpy as np
import pytest

from gwarp.config.models import ShiftInterpolation
from gwarp.kernels.interpolation import (
    UniformLinearInterpolator,
    _linear_interp,
    _sinc8_interp,
    get_method_code,
    interpolate_sample,
    resample_traces,
)
from gwarp.kernels.parallel import parallel_for
from gwarp.kernels.smoothing import GaussianSmoother, smooth_axes
from gwarp.settings import get_settings


class TestGaussianSmoother:
    def test_constant_unchanged(self):
        x = np.full((3, 4, 50), 2.5, dtype=np.float32)
        y = GaussianSmoother(3.0).apply(x)
        np.testing.assert_allclose(y, 2.5, rtol=1e-6)

    def test_zero_sigma_identity(self, rng):
        x = rng.standard_normal((2, 3, 20)).astype(np.float32)
        np.testing.assert_array_equal(GaussianSmoother(0.0).apply(x), x)

    def test_negative_sigma_rejected(self):
        with pytest.raises(ValueError):
            GaussianSmoother(-1.0)

    def test_preserves_dtype_and_input(self, rng):
        x = rng.standard_normal((2, 3, 20)).astype(np.float32)
        original = x.copy()
        y = GaussianSmoother(2.0).apply(x)
        assert y.dtype == np.float32
        np.testing.assert_array_equal(x, original)

    def test_axes_selection(self):
        # Varies only along axis 0; smoothing axes 1 and 2 must not mix shots
        x = np.zeros((3, 4, 30), dtype=np.float32)
        x[1] = 1.0
        y = GaussianSmoother(2.0).apply(x, axes=(1, 2))
        np.testing.assert_allclose(y, x, atol=1e-6)

    def test_smooths_spike(self):
        x = np.zeros(41, dtype=np.float32)
        x[20] = 1.0
        y = GaussianSmoother(3.0).apply(x)
        assert y[20] < 1.0
        assert y[17] > 0.0
        assert y.sum() == pytest.approx(1.0, rel=1e-4)

    def test_out_argument(self, rng):
        x = rng.standard_normal((4, 30)).astype(np.float32)
        out = np.empty_like(x)
        result = GaussianSmoother(1.5).apply(x, out=out)
        assert result is out


class TestSmoothAxes:
    def test_first_sigma_is_last_axis(self):
        x = np.zeros((5, 21), dtype=np.float32)
        x[2, 10] = 1.0
        y = smooth_axes(x, (2.0, 0.0))
        # Only row 2 is touched
        assert np.all(y[[0, 1, 3, 4]] == 0.0)
        assert y[2, 8] > 0.0

    def test_extra_sigmas_ignored(self, rng):
        x = rng.standard_normal(16).astype(np.float32)
        np.testing.assert_allclose(smooth_axes(x, (0.0, 5.0, 5.0)), x)


class TestTraceInterpolation:
    def test_linear_exact_sample(self):
        trace = np.array([0.0, 1.0, 2.0, 3.0, 4.0], dtype=np.float32)
        assert _linear_interp(trace, 2.0) == 2.0
        assert _linear_interp(trace, 4.0) == 4.0

    def test_linear_midpoint(self):
        trace = np.array([0.0, 2.0, 4.0], dtype=np.float32)
        assert _linear_interp(trace, 0.5) == pytest.approx(1.0)

    def test_linear_out_of_bounds(self):
        trace = np.array([1.0, 1.0, 2.0], dtype=np.float32)
        assert _linear_interp(trace, -0.5) == 0.0
        assert _linear_interp(trace, 2.5) == 0.0

    def test_sinc8_exact_at_samples(self, rng):
        trace = rng.standard_normal(32).astype(np.float32)
        for i in range(32):
            assert _sinc8_interp(trace, float(i)) == trace[i]

    def test_sinc8_reproduces_smooth_signal(self):
        t = np.arange(64, dtype=np.float64)
        trace = np.sin(2 * np.pi * t / 20.0).astype(np.float32)
        value = _sinc8_interp(trace, 30.5)
        assert value == pytest.approx(np.sin(2 * np.pi * 30.5 / 20.0), abs=0.05)

    def test_sinc8_symmetric_under_reversal(self, rng):
        trace = rng.standard_normal(32)
        reversed_trace = trace[::-1].copy()
        for t in (8.25, 13.6, 17.4, 20.9):
            forward = _sinc8_interp(trace, t)
            backward = _sinc8_interp(reversed_trace, 31.0 - t)
            assert forward == pytest.approx(backward, rel=1e-6, abs=1e-9)

    def test_sinc8_uses_all_eight_taps(self):
        # spike 3.6 samples before the query lies on the outermost tap
        trace = np.zeros(32)
        trace[10] = 1.0
        assert _sinc8_interp(trace, 13.6) != 0.0
        trace = np.zeros(32)
        trace[17] = 1.0
        assert _sinc8_interp(trace, 13.6) != 0.0

    def test_method_codes(self):
        assert get_method_code("linear") == 0
        assert get_method_code(ShiftInterpolation.SINC8) == 1
        assert get_method_code("sinc") == 1
        with pytest.raises(ValueError):
            get_method_code("cubic")

    def test_interpolate_sample_dispatch(self):
        trace = np.array([0.0, 2.0, 4.0, 6.0], dtype=np.float32)
        assert interpolate_sample(trace, 1.5, 0) == pytest.approx(3.0)


class TestResampleTraces:
    @pytest.mark.parametrize("method", [0, 1])
    def test_zero_shifts_identity(self, rng, method):
        traces = rng.standard_normal((3, 40)).astype(np.float32)
        out = np.empty_like(traces)
        resample_traces(np.zeros_like(traces), traces, out, method)
        np.testing.assert_array_equal(out, traces)

    def test_integer_shift(self, rng):
        traces = rng.standard_normal((2, 30)).astype(np.float32)
        shifts = np.full_like(traces, 3.0)
        out = np.empty_like(traces)
        resample_traces(shifts, traces, out, 0)
        np.testing.assert_array_equal(out[:, :27], traces[:, 3:])
        np.testing.assert_array_equal(out[:, 27:], 0.0)


class TestUniformLinearInterpolator:
    def _values(self):
        ns, nr, ntm = 2, 3, 5
        return np.arange(ns * nr * ntm, dtype=np.float32).reshape(ns, nr, ntm)

    def test_exact_at_nodes(self):
        values = self._values()
        li = UniformLinearInterpolator.from_decimated(values, 4)
        for s in range(2):
            for r in range(3):
                for k in range(5):
                    assert li.interpolate(4.0 * k, r, s) == pytest.approx(values[s, r, k], abs=1e-6)

    def test_linear_between_nodes(self):
        values = self._values()
        li = UniformLinearInterpolator.from_decimated(values, 4)
        expected = 0.5 * (values[1, 2, 1] + values[1, 2, 2])
        assert li.interpolate(6.0, 2.0, 1.0) == pytest.approx(expected)

    def test_constant_extrapolation(self):
        values = self._values()
        li = UniformLinearInterpolator.from_decimated(values, 4)
        assert li.interpolate(100.0, 0.0, 0.0) == pytest.approx(values[0, 0, -1])
        assert li.interpolate(-5.0, 0.0, 0.0) == pytest.approx(values[0, 0, 0])
        assert li.interpolate(0.0, 10.0, 9.0) == pytest.approx(values[1, 2, 0])

    def test_grid_query_shape(self):
        li = UniformLinearInterpolator.from_decimated(self._values(), 2)
        out = li.interpolate_grid(np.arange(11), np.arange(3), [0.0, 1.0])
        assert out.shape == (2, 3, 11)
        assert out.dtype == np.float32

    def test_singleton_axes(self):
        values = np.array([[[0.0, 2.0, 4.0]]], dtype=np.float32)
        li = UniformLinearInterpolator.from_decimated(values, 2)
        out = li.interpolate_grid(np.arange(6), [0.0], [0.0])
        np.testing.assert_allclose(out[0, 0], [0.0, 1.0, 2.0, 3.0, 4.0, 4.0])

    def test_all_singleton(self):
        values = np.full((1, 1, 1), 3.5, dtype=np.float32)
        li = UniformLinearInterpolator.from_decimated(values, 3)
        out = li.interpolate_grid(np.arange(4), [0.0], [0.0])
        np.testing.assert_array_equal(out, 3.5)

    def test_shape_mismatch_rejected(self):
        with pytest.raises(ValueError):
            UniformLinearInterpolator(4, 1.0, 0.0, 2, 1.0, 0.0, 1, 1.0, 0.0, np.zeros((1, 2, 5)))


class TestParallelFor:
    def test_all_indices_run(self):
        out = np.zeros(20, dtype=np.int64)

        def task(i):
            out[i] = i * i

        parallel_for(20, task, max_workers=4)
        np.testing.assert_array_equal(out, np.arange(20) ** 2)

    def test_zero_tasks(self):
        calls = []
        parallel_for(0, calls.append)
        assert calls == []

    def test_exception_propagates(self):
        def task(i):
            if i == 3:
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            parallel_for(8, task, max_workers=4)

    def test_all_tasks_finish_before_raise(self):
        done = []
        lock = threading.Lock()

        def task(i):
            if i == 0:
                raise ValueError("first")
            with lock:
                done.append(i)

        with pytest.raises(ValueError):
            parallel_for(6, task, max_workers=3)
        assert sorted(done) == [1, 2, 3, 4, 5]

    def test_uses_threads(self):
        names = set()
        lock = threading.Lock()

        def task(i):
            with lock:
                names.add(threading.current_thread().name)

        parallel_for(8, task, max_workers=4, thread_name_prefix="probe")
        assert all(name.startswith("probe") for name in names)

    def test_single_worker_runs_inline(self):
        get_settings().execution.max_workers = 1
        names = set()
        parallel_for(4, lambda i: names.add(threading.current_thread().name))
        assert names == {threading.current_thread().name}

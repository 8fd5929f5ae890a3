"""Tests for odjax.integrators.

Covers:
- Adaptive step-size helpers (error norm, step prediction)
- DP54 accuracy on the harmonic oscillator, forward and backward
- Step rejection and the FSAL derivatives at both ends of a step
- Cubic Hermite dense output: exact end points, exact cubics, backward segments
- JAX compatibility (jit, vmap)
"""

import jax
import jax.numpy as jnp
import pytest

from odjax.integrators import (
    AdaptiveConfig,
    InterpolationSegment,
    dp54_step,
    interpolate_segment,
    segment_from_step,
)
from odjax.integrators._adaptive import compute_error_norm, compute_next_step_size


def harmonic(t, x):
    return jnp.array([x[1], -x[0]])


def exponential_growth(t, x):
    return x


TIGHT = AdaptiveConfig(abs_tol=1e-12, rel_tol=1e-12)


# ──────────────────────────────────────────────
# Adaptive helpers
# ──────────────────────────────────────────────


class TestAdaptiveHelpers:
    def test_error_norm_absolute(self):
        err = compute_error_norm(jnp.array([1e-6, 2e-6]), jnp.zeros(2), jnp.zeros(2), 1e-6, 0.0)
        assert float(err) == pytest.approx(2.0)

    def test_error_norm_relative(self):
        err = compute_error_norm(jnp.array([1e-3]), jnp.array([10.0]), jnp.array([1.0]), 0.0, 1e-3)
        assert float(err) == pytest.approx(0.1)

    def test_next_step_grows_on_small_error(self):
        h = compute_next_step_size(1e-6, 1.0, 4.0, 0.9, 0.2, 10.0, 1e-12, 900.0)
        assert float(h) == pytest.approx(10.0)

    def test_next_step_shrinks_on_large_error(self):
        h = compute_next_step_size(1e6, 1.0, 4.0, 0.9, 0.2, 10.0, 1e-12, 900.0)
        assert float(h) == pytest.approx(0.2)

    def test_next_step_keeps_sign(self):
        h = compute_next_step_size(1.0, -2.0, 4.0, 0.9, 0.2, 10.0, 1e-12, 900.0)
        assert float(h) == pytest.approx(-1.8)

    def test_next_step_max_step(self):
        h = compute_next_step_size(0.0, 500.0, 4.0, 0.9, 0.2, 10.0, 1e-12, 900.0)
        assert float(h) == pytest.approx(900.0)


# ──────────────────────────────────────────────
# DP54 step
# ──────────────────────────────────────────────


class TestDP54Step:
    def test_harmonic_accuracy(self):
        result = dp54_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.1)
        t = float(result.dt_used)
        assert t == pytest.approx(0.1)
        expected = jnp.array([jnp.cos(t), -jnp.sin(t)])
        assert jnp.allclose(result.state, expected, atol=1e-8)
        assert float(result.error_estimate) <= 1.0

    def test_exponential_accuracy(self):
        result = dp54_step(exponential_growth, 0.0, jnp.array([1.0]), 0.05, TIGHT)
        assert float(result.state[0]) == pytest.approx(float(jnp.exp(result.dt_used)), rel=1e-11)

    def test_derivatives_at_both_ends(self):
        x0 = jnp.array([1.0, 0.0])
        result = dp54_step(harmonic, 2.0, x0, 0.1)
        assert jnp.array_equal(result.dstate_start, harmonic(2.0, x0))
        expected_end = harmonic(2.0 + result.dt_used, result.state)
        assert jnp.allclose(result.dstate_end, expected_end, atol=1e-15)

    def test_rejected_step_shrinks(self):
        result = dp54_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 5.0, TIGHT)
        t = float(result.dt_used)
        assert 0.0 < t < 5.0
        expected = jnp.array([jnp.cos(t), -jnp.sin(t)])
        assert jnp.allclose(result.state, expected, atol=1e-10)

    def test_backward_step(self):
        result = dp54_step(harmonic, 0.0, jnp.array([1.0, 0.0]), -0.1)
        t = float(result.dt_used)
        assert t == pytest.approx(-0.1)
        expected = jnp.array([jnp.cos(t), -jnp.sin(t)])
        assert jnp.allclose(result.state, expected, atol=1e-8)
        assert float(result.dt_next) < 0.0

    def test_suggested_step_grows(self):
        result = dp54_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.01)
        assert float(result.dt_next) > 0.01

    def test_jit(self):
        step = jax.jit(lambda t, x, dt: dp54_step(harmonic, t, x, dt))
        result = step(0.0, jnp.array([1.0, 0.0]), 0.1)
        eager = dp54_step(harmonic, 0.0, jnp.array([1.0, 0.0]), 0.1)
        assert jnp.allclose(result.state, eager.state, atol=1e-14)

    def test_vmap(self):
        states = jnp.array([[1.0, 0.0], [0.0, 1.0]])
        results = jax.vmap(lambda x: dp54_step(harmonic, 0.0, x, 0.1))(states)
        assert results.state.shape == (2, 2)
        assert jnp.allclose(results.state[1], jnp.array([jnp.sin(0.1), jnp.cos(0.1)]), atol=1e-8)


# ──────────────────────────────────────────────
# Dense output
# ──────────────────────────────────────────────


def _cubic_segment(t_start, t_end):
    """Segment of y = t^3 over [t_start, t_end]."""
    return InterpolationSegment(
        t_start=jnp.asarray(t_start),
        t_end=jnp.asarray(t_end),
        y_start=jnp.array([t_start**3]),
        y_end=jnp.array([t_end**3]),
        dy_start=jnp.array([3.0 * t_start**2]),
        dy_end=jnp.array([3.0 * t_end**2]),
    )


class TestDenseOutput:
    def test_cubic_reproduced(self):
        segment = _cubic_segment(1.0, 3.0)
        for t in (1.0, 1.5, 2.0, 2.75, 3.0):
            y, dy = interpolate_segment(segment, t)
            assert float(y[0]) == pytest.approx(t**3, abs=1e-12)
            assert float(dy[0]) == pytest.approx(3.0 * t**2, abs=1e-12)

    def test_backward_segment(self):
        segment = _cubic_segment(3.0, 1.0)
        y, dy = interpolate_segment(segment, 2.0)
        assert float(y[0]) == pytest.approx(8.0, abs=1e-12)
        assert float(dy[0]) == pytest.approx(12.0, abs=1e-12)

    def test_endpoints_exact(self):
        x0 = jnp.array([1.0, 0.0])
        result = dp54_step(harmonic, 0.5, x0, 0.2)
        segment = segment_from_step(0.5, x0, result)

        y_start, dy_start = interpolate_segment(segment, segment.t_start)
        y_end, dy_end = interpolate_segment(segment, segment.t_end)

        assert jnp.array_equal(y_start, x0)
        assert jnp.array_equal(y_end, result.state)
        assert jnp.allclose(dy_start, result.dstate_start, atol=1e-12)
        assert jnp.allclose(dy_end, result.dstate_end, atol=1e-12)

    def test_midpoint_accuracy(self):
        x0 = jnp.array([1.0, 0.0])
        result = dp54_step(harmonic, 0.0, x0, 0.1)
        segment = segment_from_step(0.0, x0, result)
        t_mid = 0.5 * float(result.dt_used)
        y, dy = interpolate_segment(segment, t_mid)
        assert jnp.allclose(y, jnp.array([jnp.cos(t_mid), -jnp.sin(t_mid)]), atol=1e-6)
        assert jnp.allclose(dy, jnp.array([-jnp.sin(t_mid), -jnp.cos(t_mid)]), atol=1e-5)

    def test_segment_from_step_times(self):
        x0 = jnp.array([1.0, 0.0])
        result = dp54_step(harmonic, 10.0, x0, -0.3)
        segment = segment_from_step(10.0, x0, result)
        assert float(segment.t_start) == 10.0
        assert float(segment.t_end) == pytest.approx(10.0 + float(result.dt_used))
        assert float(segment.t_end) < float(segment.t_start)

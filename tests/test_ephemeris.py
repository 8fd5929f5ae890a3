"""Tests for odjax.propagation.IntegratedEphemeris.

Segments are built from an exact circular-orbit solution (true longitude
linear in time), which cubic Hermite interpolation reproduces exactly.
"""

import jax.numpy as jnp
import pytest

from odjax.attitudes import InertialAttitude, LofAttitude
from odjax.constants import GM_EARTH, R_EARTH
from odjax.epoch import Epoch
from odjax.errors import DateOutOfRangeError, PropagationError
from odjax.integrators import InterpolationSegment
from odjax.orbits import mean_motion
from odjax.propagation import IntegratedEphemeris, SpacecraftState

A_LEO = R_EARTH + 500e3
N = float(mean_motion(A_LEO))
MASS = 1000.0
REFERENCE = Epoch(2024, 1, 1)


def _raw(t):
    return jnp.array([A_LEO, 0.0, 0.0, 0.1, 0.0, N * t, MASS])


def _rate():
    return jnp.array([0.0, 0.0, 0.0, 0.0, 0.0, N, 0.0])


def _segment(t_start, t_end):
    return InterpolationSegment(
        t_start=jnp.asarray(float(t_start)),
        t_end=jnp.asarray(float(t_end)),
        y_start=_raw(t_start),
        y_end=_raw(t_end),
        dy_start=_rate(),
        dy_end=_rate(),
    )


def _ephemeris(times, provider=None):
    ephemeris = IntegratedEphemeris()
    for i, (t0, t1) in enumerate(zip(times[:-1], times[1:])):
        ephemeris.handle_step(_segment(t0, t1), is_last=(i == len(times) - 2))
    ephemeris.initialize(REFERENCE, "GCRF", GM_EARTH, provider or LofAttitude())
    return ephemeris


# ──────────────────────────────────────────────
# Bounds
# ──────────────────────────────────────────────


class TestBounds:
    def test_forward_bounds(self):
        ephemeris = _ephemeris([0, 60, 120, 180])
        assert float(ephemeris.min_date - REFERENCE) == 0.0
        assert float(ephemeris.max_date - REFERENCE) == 180.0
        assert ephemeris.initial_time == 0.0
        assert ephemeris.final_time == 180.0

    def test_backward_bounds_ordered(self):
        ephemeris = _ephemeris([0, -60, -120])
        assert bool(ephemeris.min_date <= ephemeris.max_date)
        assert float(ephemeris.min_date - REFERENCE) == -120.0
        assert float(ephemeris.max_date - REFERENCE) == 0.0
        assert ephemeris.initial_time == 0.0
        assert ephemeris.final_time == -120.0

    def test_query_at_bounds(self):
        ephemeris = _ephemeris([0, 60, 120])
        first = ephemeris.propagate(ephemeris.min_date)
        last = ephemeris.propagate(ephemeris.max_date)
        assert float(first.orbit.elements[5]) == pytest.approx(0.0, abs=1e-15)
        assert float(last.orbit.elements[5]) == pytest.approx(N * 120.0, rel=1e-14)

    def test_query_after_max_raises(self):
        ephemeris = _ephemeris([0, 60, 120])
        with pytest.raises(DateOutOfRangeError) as excinfo:
            ephemeris.propagate(ephemeris.max_date + 1.0)
        err = excinfo.value
        assert float(err.epoch - ephemeris.max_date) == pytest.approx(1.0)
        assert err.min_date is ephemeris.min_date
        assert err.max_date is ephemeris.max_date

    def test_small_margin_outside_bounds(self):
        ephemeris = _ephemeris([0, 60, 120])
        with pytest.raises(DateOutOfRangeError):
            ephemeris.propagate(ephemeris.min_date - 1e-3)
        with pytest.raises(DateOutOfRangeError):
            ephemeris.propagate(ephemeris.max_date + 1e-3)

    def test_query_before_min_raises(self):
        ephemeris = _ephemeris([0, -60, -120])
        with pytest.raises(DateOutOfRangeError):
            ephemeris.propagate(REFERENCE - 121.0)
        with pytest.raises(DateOutOfRangeError):
            ephemeris.propagate(REFERENCE + 1.0)

    def test_out_of_range_is_propagation_error(self):
        ephemeris = _ephemeris([0, 60])
        with pytest.raises(PropagationError, match="outside the ephemeris range"):
            ephemeris.propagate(REFERENCE + 3600.0)


# ──────────────────────────────────────────────
# Interpolation
# ──────────────────────────────────────────────


class TestInterpolation:
    def test_interior_query(self):
        ephemeris = _ephemeris([0, 60, 120, 180])
        state = ephemeris.propagate(REFERENCE + 95.0)
        assert jnp.allclose(state.orbit.elements, _raw(95.0)[:6], rtol=1e-13, atol=1e-15)
        assert float(state.mass) == MASS

    def test_step_boundary_exact(self):
        ephemeris = _ephemeris([0, 60, 120])
        state = ephemeris.propagate(REFERENCE + 60.0)
        assert jnp.array_equal(state.orbit.elements, _raw(60.0)[:6])

    def test_backward_interior_query(self):
        ephemeris = _ephemeris([0, -60, -120])
        state = ephemeris.propagate(REFERENCE - 90.0)
        assert float(state.orbit.elements[5]) == pytest.approx(-90.0 * N, rel=1e-13)

    def test_segment_selected_by_search(self):
        # Each segment carries its own constant mass so that the chosen
        # segment is visible in the result; boundaries belong to the
        # segment they end
        for sign in (1.0, -1.0):
            ephemeris = IntegratedEphemeris()
            for i, (t0, t1) in enumerate(((0, 60), (60, 120), (120, 180))):
                mass = 100.0 * (i + 1)
                ephemeris.handle_step(InterpolationSegment(
                    t_start=jnp.asarray(sign * t0),
                    t_end=jnp.asarray(sign * t1),
                    y_start=_raw(sign * t0).at[6].set(mass),
                    y_end=_raw(sign * t1).at[6].set(mass),
                    dy_start=_rate(),
                    dy_end=_rate(),
                ))
            ephemeris.initialize(REFERENCE, "GCRF", GM_EARTH, LofAttitude())
            for t, expected in ((0.0, 100.0), (30.0, 100.0), (60.0, 100.0),
                                (61.0, 200.0), (120.0, 200.0), (150.0, 300.0), (180.0, 300.0)):
                state = ephemeris.propagate(REFERENCE + sign * t)
                assert float(state.mass) == pytest.approx(expected, rel=1e-14)

    def test_uneven_steps(self):
        ephemeris = _ephemeris([0, 10, 250, 260, 900])
        for t in (5.0, 10.0, 11.0, 255.0, 600.0, 900.0):
            state = ephemeris.propagate(REFERENCE + t)
            assert float(state.orbit.elements[5]) == pytest.approx(N * t, rel=1e-12)

    def test_state_context(self):
        ephemeris = _ephemeris([0, 60])
        query = REFERENCE + 30.0
        state = ephemeris.propagate(query)
        assert isinstance(state, SpacecraftState)
        assert state.frame == "GCRF"
        assert state.orbit.gm == GM_EARTH
        assert bool(state.epoch == query)

    def test_attitude_recomputed(self):
        ephemeris = _ephemeris([0, 60])
        state = ephemeris.propagate(REFERENCE + 30.0)
        expected = LofAttitude()(state.orbit, state.epoch, state.frame)
        assert jnp.allclose(state.attitude.rotation, expected.rotation)

    def test_other_attitude_law(self):
        ephemeris = _ephemeris([0, 60], provider=InertialAttitude())
        state = ephemeris.propagate(REFERENCE + 30.0)
        assert jnp.array_equal(state.attitude.rotation, jnp.array([1.0, 0.0, 0.0, 0.0]))

    def test_repeated_queries_do_not_mutate(self):
        ephemeris = _ephemeris([0, 60, 120])
        a = ephemeris.propagate(REFERENCE + 100.0)
        ephemeris.propagate(REFERENCE + 10.0)
        b = ephemeris.propagate(REFERENCE + 100.0)
        assert jnp.array_equal(a.orbit.elements, b.orbit.elements)


# ──────────────────────────────────────────────
# Lifecycle and errors
# ──────────────────────────────────────────────


class TestLifecycle:
    def test_query_before_initialize(self):
        ephemeris = IntegratedEphemeris()
        ephemeris.handle_step(_segment(0, 60))
        with pytest.raises(PropagationError, match="before initialization"):
            ephemeris.propagate(REFERENCE)
        with pytest.raises(PropagationError):
            _ = ephemeris.min_date

    def test_initialize_without_steps(self):
        with pytest.raises(PropagationError, match="without integration steps"):
            IntegratedEphemeris().initialize(REFERENCE, "GCRF", GM_EARTH, LofAttitude())

    def test_times_without_steps(self):
        with pytest.raises(PropagationError):
            _ = IntegratedEphemeris().initial_time

    def test_reset(self):
        ephemeris = _ephemeris([0, 60, 120])
        assert ephemeris.segment_count == 2
        ephemeris.reset()
        assert ephemeris.segment_count == 0
        with pytest.raises(PropagationError):
            ephemeris.propagate(REFERENCE)

    def test_reuse_after_reset(self):
        ephemeris = _ephemeris([0, 60])
        ephemeris.reset()
        ephemeris.handle_step(_segment(0, -30), is_last=True)
        ephemeris.initialize(REFERENCE, "EME2000", GM_EARTH, LofAttitude())
        assert ephemeris.frame == "EME2000"
        assert float(ephemeris.min_date - REFERENCE) == -30.0

    def test_zero_length_step(self):
        with pytest.raises(ValueError, match="Zero-length"):
            IntegratedEphemeris().handle_step(_segment(10, 10))

    def test_direction_change(self):
        ephemeris = IntegratedEphemeris()
        ephemeris.handle_step(_segment(0, 60))
        with pytest.raises(ValueError, match="direction changed"):
            ephemeris.handle_step(_segment(60, 30))

    def test_attitude_failure_wrapped(self):
        def broken(orbit, epoch, frame):
            raise RuntimeError("no attitude")

        ephemeris = _ephemeris([0, 60], provider=broken)
        with pytest.raises(PropagationError, match="Attitude computation failed") as excinfo:
            ephemeris.propagate(REFERENCE + 30.0)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_properties(self):
        ephemeris = _ephemeris([0, 60])
        assert ephemeris.frame == "GCRF"
        assert ephemeris.gm == GM_EARTH
        assert "1 steps" in repr(ephemeris)

    def test_repr_not_initialized(self):
        assert "not initialized" in repr(IntegratedEphemeris())

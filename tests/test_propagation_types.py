"""Tests for the Orbit and SpacecraftState types."""

import jax.numpy as jnp
import pytest

from odjax.attitudes import LofAttitude
from odjax.constants import GM_EARTH, R_EARTH
from odjax.coordinates import state_eqn_to_eci
from odjax.epoch import Epoch
from odjax.propagation import DEFAULT_FRAME, Orbit, SpacecraftState

EPOCH = Epoch(2024, 1, 1)
X_EQ = jnp.array([7000e3, 0.01, -0.005, 0.1, 0.05, 1.2])


class TestOrbit:
    def test_defaults(self):
        orbit = Orbit(X_EQ, EPOCH)
        assert orbit.frame == DEFAULT_FRAME == "GCRF"
        assert orbit.gm == GM_EARTH

    def test_position_velocity(self):
        orbit = Orbit(X_EQ, EPOCH)
        pv = state_eqn_to_eci(X_EQ)
        assert jnp.array_equal(orbit.position(), pv[:3])
        assert jnp.array_equal(orbit.velocity(), pv[3:])

    def test_from_cartesian(self):
        pv = state_eqn_to_eci(X_EQ)
        orbit = Orbit.from_cartesian(pv, EPOCH, frame="EME2000")
        assert orbit.frame == "EME2000"
        assert jnp.allclose(orbit.position_velocity(), pv, atol=1e-5)

    def test_from_keplerian(self):
        orbit = Orbit.from_keplerian([R_EARTH + 500e3, 0.0, 0.0, 0.0, 0.0, 0.0], EPOCH)
        assert jnp.allclose(orbit.position(), jnp.array([R_EARTH + 500e3, 0.0, 0.0]), atol=1e-6)

    def test_acceleration(self):
        orbit = Orbit(X_EQ, EPOCH)
        r = orbit.position()
        expected = -GM_EARTH * r / jnp.linalg.norm(r) ** 3
        assert jnp.allclose(orbit.acceleration(), expected, rtol=1e-14)

    def test_keplerian_period(self):
        orbit = Orbit(X_EQ, EPOCH, gm=4.9028e12)
        expected = 2.0 * jnp.pi * (7000e3**3 / 4.9028e12) ** 0.5
        assert float(orbit.keplerian_period()) == pytest.approx(float(expected), rel=1e-12)

    def test_with_elements(self):
        orbit = Orbit(X_EQ, EPOCH, "EME2000", 1.0)
        other = orbit.with_elements(X_EQ.at[5].set(0.0))
        assert other.frame == "EME2000"
        assert other.gm == 1.0
        assert other.epoch is orbit.epoch
        assert float(other.elements[5]) == 0.0


class TestSpacecraftState:
    def test_from_orbit(self):
        orbit = Orbit(X_EQ, EPOCH)
        state = SpacecraftState.from_orbit(orbit, LofAttitude(), 500.0)
        assert float(state.mass) == 500.0
        assert state.epoch is EPOCH
        assert state.frame == "GCRF"
        assert state.attitude.rotation.shape == (4,)

    def test_to_vector(self):
        state = SpacecraftState.from_orbit(Orbit(X_EQ, EPOCH), LofAttitude(), 500.0)
        vector = state.to_vector()
        assert vector.shape == (7,)
        assert jnp.array_equal(vector[:6], X_EQ)
        assert float(vector[6]) == pytest.approx(500.0)

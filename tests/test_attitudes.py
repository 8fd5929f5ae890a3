"""Tests for odjax.attitudes: quaternion conversions and attitude laws."""

import jax.numpy as jnp
import pytest

from odjax.attitudes import (
    Attitude,
    InertialAttitude,
    LofAttitude,
    quaternion_to_rotation_matrix,
    rotation_matrix_to_quaternion,
)
from odjax.constants import R_EARTH
from odjax.epoch import Epoch
from odjax.orbits import mean_motion
from odjax.propagation import Orbit

EPOCH = Epoch(2024, 1, 1)
A_LEO = R_EARTH + 500e3


def _unit(q):
    q = jnp.asarray(q)
    return q / jnp.linalg.norm(q)


class TestConversions:
    def test_identity(self):
        R = quaternion_to_rotation_matrix(jnp.array([1.0, 0.0, 0.0, 0.0]))
        assert jnp.allclose(R, jnp.eye(3), atol=1e-15)

    @pytest.mark.parametrize("q", [
        [0.9, 0.1, 0.2, 0.3],
        [0.1, 0.9, 0.2, 0.3],
        [0.1, 0.2, 0.9, 0.3],
        [0.1, 0.2, 0.3, 0.9],
    ])
    def test_roundtrip_each_branch(self, q):
        q = _unit(q)
        back = rotation_matrix_to_quaternion(quaternion_to_rotation_matrix(q))
        assert jnp.allclose(back, q, atol=1e-12)

    def test_rotation_about_z(self):
        angle = 0.3
        q = jnp.array([jnp.cos(angle / 2), 0.0, 0.0, jnp.sin(angle / 2)])
        R = quaternion_to_rotation_matrix(q)
        # Reference x axis seen from body axes rotated by +angle about z
        expected = jnp.array([jnp.cos(angle), -jnp.sin(angle), 0.0])
        assert jnp.allclose(R @ jnp.array([1.0, 0.0, 0.0]), expected, atol=1e-15)

    def test_orthonormal(self):
        R = quaternion_to_rotation_matrix(_unit([0.3, -0.5, 0.2, 0.7]))
        assert jnp.allclose(R @ R.T, jnp.eye(3), atol=1e-14)
        assert float(jnp.linalg.det(R)) == pytest.approx(1.0, abs=1e-14)


class TestInertialAttitude:
    def test_default_identity(self):
        orbit = Orbit(jnp.array([A_LEO, 0.0, 0.0, 0.0, 0.0, 0.0]), EPOCH)
        attitude = InertialAttitude()(orbit, EPOCH, orbit.frame)
        assert isinstance(attitude, Attitude)
        assert jnp.array_equal(attitude.rotation, jnp.array([1.0, 0.0, 0.0, 0.0]))
        assert jnp.all(attitude.rotation_rate == 0.0)
        assert jnp.all(attitude.rotation_acceleration == 0.0)

    def test_normalized(self):
        provider = InertialAttitude([2.0, 0.0, 0.0, 0.0])
        assert jnp.allclose(provider.rotation, jnp.array([1.0, 0.0, 0.0, 0.0]))


class TestLofAttitude:
    def test_axes(self):
        orbit = Orbit(jnp.array([7000e3, 0.01, -0.02, 0.2, 0.1, 0.8]), EPOCH)
        attitude = LofAttitude()(orbit, EPOCH, orbit.frame)
        R = attitude.rotation_matrix()

        r = orbit.position()
        h = jnp.cross(r, orbit.velocity())
        assert jnp.allclose(R @ (r / jnp.linalg.norm(r)), jnp.array([1.0, 0.0, 0.0]), atol=1e-12)
        assert jnp.allclose(R @ (h / jnp.linalg.norm(h)), jnp.array([0.0, 0.0, 1.0]), atol=1e-12)

    def test_unit_quaternion(self):
        orbit = Orbit(jnp.array([7000e3, 0.01, -0.02, 0.2, 0.1, 2.5]), EPOCH)
        attitude = LofAttitude()(orbit, EPOCH, orbit.frame)
        assert float(jnp.linalg.norm(attitude.rotation)) == pytest.approx(1.0, abs=1e-12)

    def test_circular_rate(self):
        orbit = Orbit(jnp.array([A_LEO, 0.0, 0.0, 0.1, 0.0, 1.0]), EPOCH)
        attitude = LofAttitude()(orbit, EPOCH, orbit.frame)
        assert float(attitude.rotation_rate[2]) == pytest.approx(float(mean_motion(A_LEO)), rel=1e-10)
        assert jnp.allclose(attitude.rotation_rate[:2], 0.0)
        assert jnp.allclose(attitude.rotation_acceleration, 0.0, atol=1e-18)

    def test_eccentric_rate_changes(self):
        # Moving away from perigee the frame slows down
        orbit = Orbit(jnp.array([A_LEO, 0.1, 0.0, 0.0, 0.0, 0.5]), EPOCH)
        attitude = LofAttitude()(orbit, EPOCH, orbit.frame)
        assert float(attitude.rotation_acceleration[2]) < 0.0

"""Attitude laws.

An attitude provider is any callable ``provider(orbit, epoch, frame)``
returning an :class:`~odjax.attitudes.Attitude`.  Providers must be built
from JAX operations on ``orbit.elements`` so that they can be evaluated on
differentiable orbits (see :func:`odjax.differentiation.apply`).

Two laws are provided:

- :class:`InertialAttitude`: fixed orientation with respect to the
  reference frame.
- :class:`LofAttitude`: body axes aligned with the local orbital frame
  (X radial, Z along the orbital angular momentum, Y completing the
  right-handed triad).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import jax.numpy as jnp
from jax.typing import ArrayLike

from odjax.config import get_dtype

from ._types import Attitude
from .conversions import rotation_matrix_to_quaternion

if TYPE_CHECKING:
    from odjax.epoch import Epoch
    from odjax.propagation import Orbit


class InertialAttitude:
    """Attitude law with a constant orientation and no rotation.

    Args:
        rotation: Unit quaternion ``[w, x, y, z]`` from the reference frame
            to body axes. Default: identity.
    """

    def __init__(self, rotation: ArrayLike | None = None) -> None:
        if rotation is None:
            rotation = [1.0, 0.0, 0.0, 0.0]
        rotation = jnp.asarray(rotation, dtype=get_dtype())
        self.rotation = rotation / jnp.linalg.norm(rotation)

    def __call__(self, orbit: Orbit, epoch: Epoch, frame: str) -> Attitude:
        zero = jnp.zeros(3, dtype=self.rotation.dtype)
        return Attitude(self.rotation, zero, zero)

    def __repr__(self):
        return f"InertialAttitude(rotation={self.rotation})"


class LofAttitude:
    """Attitude law aligned with the local orbital frame.

    The body X axis points along the position vector, Z along the orbital
    angular momentum and Y completes the triad (roughly along velocity).
    Under two-body motion the frame rotates about Z at ``|h| / r^2``.
    """

    def __call__(self, orbit: Orbit, epoch: Epoch, frame: str) -> Attitude:
        pv = orbit.position_velocity()
        r = pv[:3]
        v = pv[3:6]

        h = jnp.cross(r, v)
        r_norm = jnp.linalg.norm(r)
        h_norm = jnp.linalg.norm(h)

        x_axis = r / r_norm
        z_axis = h / h_norm
        y_axis = jnp.cross(z_axis, x_axis)

        rotation = rotation_matrix_to_quaternion(jnp.stack([x_axis, y_axis, z_axis]))

        rate = h_norm / r_norm**2
        rate_dot = -2.0 * h_norm * jnp.dot(r, v) / r_norm**4
        zero = jnp.zeros_like(rate)

        return Attitude(
            rotation,
            jnp.array([zero, zero, rate]),
            jnp.array([zero, zero, rate_dot]),
        )

    def __repr__(self):
        return "LofAttitude()"

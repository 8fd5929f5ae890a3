"""Type definitions for attitudes.

- :class:`Attitude`: orientation of the spacecraft body axes with respect
  to a reference frame, with its first two time derivatives.

The type is a :class:`~typing.NamedTuple`, which JAX treats as a pytree,
so attitude laws returning it can be traced by ``jax.jvp`` and lifted to
differentiable orbits with :func:`odjax.differentiation.apply`.
"""

from __future__ import annotations

from typing import NamedTuple

from jax import Array

from .conversions import quaternion_to_rotation_matrix


class Attitude(NamedTuple):
    """Spacecraft attitude.

    Attributes:
        rotation: Unit quaternion of shape ``(4,)`` in scalar-first order
            ``[w, x, y, z]``, transforming reference-frame vectors into
            body-frame vectors.
        rotation_rate: Angular velocity of the body with respect to the
            reference frame, in body axes. Units: *rad/s*
        rotation_acceleration: Angular acceleration, in body axes.
            Units: *rad/s^2*
    """

    rotation: Array
    rotation_rate: Array
    rotation_acceleration: Array

    def rotation_matrix(self) -> Array:
        """Return the ``(3, 3)`` matrix equivalent of :attr:`rotation`."""
        return quaternion_to_rotation_matrix(self.rotation)

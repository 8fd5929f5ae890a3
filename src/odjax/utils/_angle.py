"""Angle conversion helpers.

These helpers implement the ``use_degrees`` keyword accepted by the
element conversions, selecting between degree and radian values with
``jnp.where`` so they stay traceable.
"""

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike


def to_radians(angle: ArrayLike, use_degrees: bool) -> Array:
    """Return *angle* in radians, converting from degrees if ``use_degrees``."""
    return jnp.where(use_degrees, jnp.deg2rad(angle), angle)


def from_radians(angle: ArrayLike, use_degrees: bool) -> Array:
    """Return an angle given in radians, in degrees if ``use_degrees``."""
    return jnp.where(use_degrees, jnp.rad2deg(angle), angle)

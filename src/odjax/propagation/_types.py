"""Type definitions for propagation.

- :class:`Orbit`: equinoctial orbit at an epoch, in a named frame.
- :class:`SpacecraftState`: orbit, attitude and mass.

Both are :class:`~typing.NamedTuple` instances.  Frames are plain string
labels; no transformation between frames is ever performed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from odjax.attitudes import Attitude
from odjax.config import get_dtype
from odjax.constants import GM_EARTH
from odjax.coordinates import state_eci_to_eqn, state_eqn_to_eci, state_koe_to_eqn
from odjax.epoch import Epoch
from odjax.orbits import accel_keplerian, orbital_period

DEFAULT_FRAME = "GCRF"


class Orbit(NamedTuple):
    """Orbit described by equinoctial elements.

    Attributes:
        elements: Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
        epoch: Date of the elements.
        frame: Label of the inertial frame the elements are expressed in.
        gm: Gravitational parameter of the central body. Units: *m^3/s^2*
    """

    elements: Array
    epoch: Epoch
    frame: str = DEFAULT_FRAME
    gm: float = GM_EARTH

    @classmethod
    def from_keplerian(cls, x_oe: ArrayLike, epoch: Epoch, frame: str = DEFAULT_FRAME,
                       gm: float = GM_EARTH, use_degrees: bool = False) -> Orbit:
        """Build an orbit from Keplerian elements ``[a, e, i, RAAN, omega, M]``."""
        return cls(state_koe_to_eqn(x_oe, use_degrees), epoch, frame, gm)

    @classmethod
    def from_cartesian(cls, x_cart: ArrayLike, epoch: Epoch, frame: str = DEFAULT_FRAME,
                       gm: float = GM_EARTH) -> Orbit:
        """Build an orbit from a Cartesian state ``[x, y, z, vx, vy, vz]``."""
        return cls(state_eci_to_eqn(x_cart, gm), epoch, frame, gm)

    def position_velocity(self) -> Array:
        """Cartesian state ``[x, y, z, vx, vy, vz]`` in :attr:`frame`."""
        return state_eqn_to_eci(self.elements, self.gm)

    def position(self) -> Array:
        return self.position_velocity()[:3]

    def velocity(self) -> Array:
        return self.position_velocity()[3:6]

    def acceleration(self) -> Array:
        """Keplerian acceleration at the orbit's position."""
        return accel_keplerian(self.position(), self.gm)

    def keplerian_period(self) -> Array:
        """Two-body period of the orbit. Units: *s*"""
        return orbital_period(self.elements[0], self.gm)

    def with_elements(self, elements: ArrayLike) -> Orbit:
        """Return an orbit with the same date, frame and gm but other elements."""
        return self._replace(elements=jnp.asarray(elements, dtype=get_dtype()))


AttitudeProvider = Callable[[Orbit, Epoch, str], Attitude]


class SpacecraftState(NamedTuple):
    """Full spacecraft state.

    Attributes:
        orbit: Orbit.
        attitude: Attitude with respect to ``orbit.frame``.
        mass: Spacecraft mass. Units: *kg*
    """

    orbit: Orbit
    attitude: Attitude
    mass: Array

    @classmethod
    def from_orbit(cls, orbit: Orbit, attitude_provider: AttitudeProvider,
                   mass: ArrayLike = 1000.0) -> SpacecraftState:
        """Build a state, computing the attitude from *attitude_provider*."""
        attitude = attitude_provider(orbit, orbit.epoch, orbit.frame)
        return cls(orbit, attitude, jnp.asarray(mass, dtype=get_dtype()))

    @property
    def epoch(self) -> Epoch:
        return self.orbit.epoch

    @property
    def frame(self) -> str:
        return self.orbit.frame

    def to_vector(self) -> Array:
        """Raw 7-vector ``[a, ex, ey, hx, hy, lv, mass]`` used by the integrator."""
        return jnp.concatenate([self.orbit.elements, jnp.reshape(self.mass, (1,))])

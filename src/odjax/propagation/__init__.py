"""Orbit propagation.

- :class:`Orbit` and :class:`SpacecraftState` state types.
- :class:`IntegratedEphemeris`: bounded dense-output ephemeris recorded
  from a numerical integration.
- :class:`NumericalPropagator` and :func:`create_keplerian_dynamics`:
  adaptive integration of the equinoctial state feeding the ephemeris.
"""

from ._types import DEFAULT_FRAME, AttitudeProvider, Orbit, SpacecraftState
from .ephemeris import IntegratedEphemeris
from .numerical import NumericalPropagator, create_keplerian_dynamics

__all__ = [
    "DEFAULT_FRAME",
    "AttitudeProvider",
    "Orbit",
    "SpacecraftState",
    "IntegratedEphemeris",
    "NumericalPropagator",
    "create_keplerian_dynamics",
]

"""Coordinate transformations.

This sub-module provides functions for converting between the orbit
representations used by odjax:

- **Equinoctial**: elements ``[a, ex, ey, hx, hy, lv]`` ↔ Cartesian
- **Keplerian**: elements ``[a, e, i, Ω, ω, M]`` ↔ equinoctial
"""

from .equinoctial import (
    state_eci_to_eqn,
    state_eqn_to_eci,
    state_eqn_to_koe,
    state_koe_to_eqn,
)

__all__ = [
    "state_eqn_to_eci",
    "state_eci_to_eqn",
    "state_koe_to_eqn",
    "state_eqn_to_koe",
]

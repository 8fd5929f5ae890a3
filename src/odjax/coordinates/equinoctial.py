"""Equinoctial orbital element conversions.

Converts between equinoctial elements ``[a, ex, ey, hx, hy, lv]`` and
Cartesian state vectors ``[x, y, z, vx, vy, vz]`` or Keplerian elements
``[a, e, i, RAAN, omega, M]``.

| Index | Element                                   | Units         |
|-------|-------------------------------------------|---------------|
| 0     | *a*: semi-major axis                      | m             |
| 1     | *ex*: e cos(ω + Ω)                        | dimensionless |
| 2     | *ey*: e sin(ω + Ω)                        | dimensionless |
| 3     | *hx*: tan(i/2) cos(Ω)                     | dimensionless |
| 4     | *hy*: tan(i/2) sin(Ω)                     | dimensionless |
| 5     | *lv*: true longitude argument ν + ω + Ω   | rad           |

The elements are non-singular for circular and equatorial orbits and are
singular only for retrograde equatorial orbits (i = 180°).

The Cartesian frame is whatever inertial frame the elements are expressed
in; no frame transformation is applied.  All functions are pure JAX and
can be differentiated with ``jax.jvp`` / ``jax.jacfwd``.

References:
    1. R. A. Broucke and P. J. Cefola, "On the equinoctial orbit elements",
       *Celestial Mechanics* 5, 1972.
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from odjax.config import get_dtype
from odjax.constants import GM_EARTH
from odjax.orbits import anomaly_mean_to_true, anomaly_true_to_mean
from odjax.utils import from_radians, to_radians


def _equinoctial_basis(hx, hy):
    """Unit vectors of the equinoctial reference frame."""
    hx2 = hx * hx
    hy2 = hy * hy
    fact_h = 1.0 / (1.0 + hx2 + hy2)
    hxhy2 = 2.0 * hx * hy
    u = fact_h * jnp.array([1.0 + hx2 - hy2, hxhy2, -2.0 * hy])
    v = fact_h * jnp.array([hxhy2, 1.0 - hx2 + hy2, 2.0 * hx])
    return u, v


def state_eqn_to_eci(x_eq: ArrayLike, gm: ArrayLike = GM_EARTH) -> Array:
    """Convert equinoctial elements to a Cartesian state vector.

    Args:
        x_eq: Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.

    Examples:
        ```python
        import jax.numpy as jnp
        from odjax.constants import R_EARTH
        from odjax.coordinates import state_eqn_to_eci
        x_eq = jnp.array([R_EARTH + 500e3, 0.0, 0.0, 0.0, 0.0, 0.0])
        state = state_eqn_to_eci(x_eq)   # [a, 0, 0, 0, v_circ, 0]
        ```
    """
    x_eq = jnp.asarray(x_eq, dtype=get_dtype())
    a, ex, ey, hx, hy, lv = x_eq[0], x_eq[1], x_eq[2], x_eq[3], x_eq[4], x_eq[5]

    u, v = _equinoctial_basis(hx, hy)

    cos_l = jnp.cos(lv)
    sin_l = jnp.sin(lv)
    p = a * (1.0 - ex * ex - ey * ey)
    r = p / (1.0 + ex * cos_l + ey * sin_l)

    position = r * cos_l * u + r * sin_l * v
    velocity = jnp.sqrt(gm / p) * (-(ey + sin_l) * u + (ex + cos_l) * v)

    return jnp.concatenate([position, velocity])


def state_eci_to_eqn(x_cart: ArrayLike, gm: ArrayLike = GM_EARTH) -> Array:
    """Convert a Cartesian state vector to equinoctial elements.

    Args:
        x_cart: State ``[x, y, z, vx, vy, vz]`` in *m* and *m/s*.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.  ``lv`` is in
        ``(-pi, pi]``.
    """
    x_cart = jnp.asarray(x_cart, dtype=get_dtype())
    pvp = x_cart[:3]
    pvv = x_cart[3:6]

    r2 = jnp.dot(pvp, pvp)
    r = jnp.sqrt(r2)
    v2 = jnp.dot(pvv, pvv)
    r_v2_over_mu = r * v2 / gm

    # Vis-viva
    a = r / (2.0 - r_v2_over_mu)

    # Inclination vector from the unit angular momentum
    w = jnp.cross(pvp, pvv)
    w = w / jnp.linalg.norm(w)
    d = 1.0 / (1.0 + w[2])
    hx = -d * w[1]
    hy = d * w[0]

    # True longitude argument
    c_lv = (pvp[0] - d * pvp[2] * w[0]) / r
    s_lv = (pvp[1] - d * pvp[2] * w[1]) / r
    lv = jnp.arctan2(s_lv, c_lv)

    # Eccentricity vector
    e_se = jnp.dot(pvp, pvv) / jnp.sqrt(gm * a)
    e_ce = r_v2_over_mu - 1.0
    e2 = e_ce * e_ce + e_se * e_se
    f = e_ce - e2
    g = jnp.sqrt(1.0 - e2) * e_se
    ex = a * (f * c_lv + g * s_lv) / r
    ey = a * (f * s_lv - g * c_lv) / r

    return jnp.array([a, ex, ey, hx, hy, lv])


def state_koe_to_eqn(x_oe: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert Keplerian elements to equinoctial elements.

    Args:
        x_oe: Keplerian elements ``[a, e, i, RAAN, omega, M]``.
            Semi-major axis in *m*, angles in *rad* (or *deg* if
            ``use_degrees=True``).
        use_degrees: If ``True``, interpret angular elements as degrees.

    Returns:
        Equinoctial elements ``[a, ex, ey, hx, hy, lv]``, ``lv`` in *rad*.
    """
    x_oe = jnp.asarray(x_oe, dtype=get_dtype())

    a = x_oe[0]
    e = x_oe[1]
    i = to_radians(x_oe[2], use_degrees)
    raan = to_radians(x_oe[3], use_degrees)
    omega = to_radians(x_oe[4], use_degrees)
    M = to_radians(x_oe[5], use_degrees)

    nu = anomaly_mean_to_true(M, e)
    pa_raan = omega + raan
    tan_half_i = jnp.tan(i / 2.0)

    return jnp.array([
        a,
        e * jnp.cos(pa_raan),
        e * jnp.sin(pa_raan),
        tan_half_i * jnp.cos(raan),
        tan_half_i * jnp.sin(raan),
        nu + pa_raan,
    ])


def state_eqn_to_koe(x_eq: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert equinoctial elements to Keplerian elements.

    For circular or equatorial orbits the split between the angles
    involved is arbitrary; the one with ``omega = atan2(ey, ex) - RAAN``
    and ``RAAN = atan2(hy, hx)`` is returned.

    Args:
        x_eq: Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
        use_degrees: If ``True``, return angular elements in degrees.

    Returns:
        Keplerian elements ``[a, e, i, RAAN, omega, M]`` with angles in
        ``[0, 2pi)``.
    """
    x_eq = jnp.asarray(x_eq, dtype=get_dtype())
    a, ex, ey, hx, hy, lv = x_eq[0], x_eq[1], x_eq[2], x_eq[3], x_eq[4], x_eq[5]

    e = jnp.sqrt(ex * ex + ey * ey)
    i = 2.0 * jnp.arctan(jnp.sqrt(hx * hx + hy * hy))
    raan = jnp.arctan2(hy, hx)
    pa_raan = jnp.arctan2(ey, ex)
    omega = pa_raan - raan
    M = anomaly_true_to_mean(lv - pa_raan, e)

    two_pi = 2.0 * jnp.pi
    raan = jnp.mod(raan, two_pi)
    omega = jnp.mod(omega, two_pi)
    M = jnp.mod(M, two_pi)

    return jnp.array([
        a,
        e,
        from_radians(i, use_degrees),
        from_radians(raan, use_degrees),
        from_radians(omega, use_degrees),
        from_radians(M, use_degrees),
    ])

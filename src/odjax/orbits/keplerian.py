"""Two-body orbital mechanics functions.

This module provides the Keplerian quantities needed by the equinoctial
orbit representation: mean motion and period, the anomaly conversions used
to move between Keplerian and equinoctial elements, the point-mass
acceleration, and the two-body rate of the equinoctial elements.

All functions use JAX operations and are compatible with ``jax.jit``,
``jax.vmap``, ``jax.grad`` and ``jax.jvp``.  Inputs are coerced to the
configured float dtype (see :func:`odjax.config.set_dtype`).
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from odjax.config import get_dtype
from odjax.constants import GM_EARTH
from odjax.utils import from_radians, to_radians

# ──────────────────────────────────────────────
# Mean motion and period
# ──────────────────────────────────────────────


def mean_motion(a: ArrayLike, gm: ArrayLike = GM_EARTH, use_degrees: bool = False) -> Array:
    """Compute the mean motion of an orbit.

    Args:
        a: Semi-major axis. Units: *m*
        gm: Gravitational parameter of the central body. Units: *m^3/s^2*
        use_degrees: If ``True``, return mean motion in degrees per second.

    Returns:
        Mean motion. Units: *rad/s* or *deg/s*

    Examples:
        ```python
        from odjax.constants import R_EARTH
        from odjax.orbits import mean_motion
        n = mean_motion(R_EARTH + 500e3)
        ```
    """
    a = jnp.asarray(a, dtype=get_dtype())
    n = jnp.sqrt(gm / a**3)
    return from_radians(n, use_degrees)


def orbital_period(a: ArrayLike, gm: ArrayLike = GM_EARTH) -> Array:
    """Compute the orbital period.

    Args:
        a: Semi-major axis. Units: *m*
        gm: Gravitational parameter of the central body. Units: *m^3/s^2*

    Returns:
        Orbital period. Units: *s*
    """
    a = jnp.asarray(a, dtype=get_dtype())
    return 2.0 * jnp.pi * jnp.sqrt(a**3 / gm)


# ──────────────────────────────────────────────
# Anomaly conversions
# ──────────────────────────────────────────────


def anomaly_eccentric_to_mean(anm_ecc: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert eccentric anomaly to mean anomaly.

    Applies Kepler's equation: ``M = E - e * sin(E)``.

    Args:
        anm_ecc: Eccentric anomaly. Units: *rad* or *deg*
        e: Eccentricity. Dimensionless.
        use_degrees: If ``True``, input and output are in degrees.

    Returns:
        Mean anomaly. Units: *rad* or *deg*

    References:
        O. Montenbruck, and E. Gill, *Satellite Orbits: Models, Methods and
        Applications*, 2012. Eq. 2.65.
    """
    anm_ecc = jnp.asarray(anm_ecc, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())

    E = to_radians(anm_ecc, use_degrees)
    M = E - e * jnp.sin(E)
    return from_radians(M, use_degrees)


def anomaly_mean_to_eccentric(anm_mean: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert mean anomaly to eccentric anomaly.

    Solves Kepler's equation ``M = E - e * sin(E)`` for ``E`` using
    Newton-Raphson iteration implemented with ``jax.lax.fori_loop``.

    Args:
        anm_mean: Mean anomaly. Units: *rad* or *deg*
        e: Eccentricity. Dimensionless.
        use_degrees: If ``True``, input and output are in degrees.

    Returns:
        Eccentric anomaly. Units: *rad* or *deg*
    """
    anm_mean = jnp.asarray(anm_mean, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())

    M = to_radians(anm_mean, use_degrees)
    M = M % (2.0 * jnp.pi)

    # Initial guess: M for low eccentricity, pi for high eccentricity
    E0 = jnp.where(e < 0.8, M, jnp.pi)

    def newton_step(_, E):
        f = E - e * jnp.sin(E) - M
        E = E - f / (1.0 - e * jnp.cos(E))
        return E

    E = jax.lax.fori_loop(0, 10, newton_step, E0)
    return from_radians(E, use_degrees)


def anomaly_true_to_eccentric(anm_true: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert true anomaly to eccentric anomaly.

    References:
        D. Vallado, *Fundamentals of Astrodynamics and Applications
        (4th Ed.)*, pp. 47, eq. 2-9, 2010.
    """
    anm_true = jnp.asarray(anm_true, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())

    nu = to_radians(anm_true, use_degrees)
    E = jnp.arctan2(jnp.sin(nu) * jnp.sqrt(1.0 - e**2), jnp.cos(nu) + e)
    return from_radians(E, use_degrees)


def anomaly_eccentric_to_true(anm_ecc: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert eccentric anomaly to true anomaly."""
    anm_ecc = jnp.asarray(anm_ecc, dtype=get_dtype())
    e = jnp.asarray(e, dtype=get_dtype())

    E = to_radians(anm_ecc, use_degrees)
    nu = jnp.arctan2(jnp.sin(E) * jnp.sqrt(1.0 - e**2), jnp.cos(E) - e)
    return from_radians(nu, use_degrees)


def anomaly_true_to_mean(anm_true: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert true anomaly to mean anomaly (true -> eccentric -> mean)."""
    return anomaly_eccentric_to_mean(
        anomaly_true_to_eccentric(anm_true, e, use_degrees),
        e,
        use_degrees,
    )


def anomaly_mean_to_true(anm_mean: ArrayLike, e: ArrayLike, use_degrees: bool = False) -> Array:
    """Convert mean anomaly to true anomaly (mean -> eccentric -> true)."""
    return anomaly_eccentric_to_true(
        anomaly_mean_to_eccentric(anm_mean, e, use_degrees),
        e,
        use_degrees,
    )


# ──────────────────────────────────────────────
# Two-body dynamics
# ──────────────────────────────────────────────


def accel_keplerian(r: ArrayLike, gm: ArrayLike = GM_EARTH) -> Array:
    """Point-mass gravitational acceleration.

    Args:
        r: Position vector ``[x, y, z]``. Units: *m*
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Acceleration ``-gm * r / |r|^3``. Units: *m/s^2*
    """
    r = jnp.asarray(r, dtype=get_dtype())
    r_norm = jnp.linalg.norm(r)
    return -gm * r / r_norm**3


def eqn_keplerian_rate(x_eq: ArrayLike, gm: ArrayLike = GM_EARTH) -> Array:
    """Time derivative of equinoctial elements under two-body motion.

    Only the true longitude argument varies:
    ``dlv/dt = sqrt(gm * p) * (w / p)^2`` with ``p = a (1 - ex^2 - ey^2)``
    and ``w = 1 + ex cos(lv) + ey sin(lv)``.

    Args:
        x_eq: Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
        gm: Gravitational parameter. Units: *m^3/s^2*

    Returns:
        Element rates ``[0, 0, 0, 0, 0, dlv/dt]``.
    """
    x_eq = jnp.asarray(x_eq, dtype=get_dtype())
    a, ex, ey, _, _, lv = x_eq[0], x_eq[1], x_eq[2], x_eq[3], x_eq[4], x_eq[5]
    # sqrt(gm p) / p^2 == n / (1 - e^2)^(3/2)
    one_minus_e2 = 1.0 - ex * ex - ey * ey
    w = 1.0 + ex * jnp.cos(lv) + ey * jnp.sin(lv)
    lv_dot = mean_motion(a, gm) * w**2 / one_minus_e2**1.5
    return jnp.zeros(6, dtype=x_eq.dtype).at[5].set(lv_dot)

"""Quaternion and rotation matrix conversions.

Convention:
    Quaternion layout is scalar-first: ``[w, x, y, z]`` (shape ``(4,)``).
    Rotation matrix layout is row-major: shape ``(3, 3)``; its rows are the
    body axes expressed in the reference frame, so ``R @ v`` maps a
    reference-frame vector to body axes.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp


def quaternion_to_rotation_matrix(q: jax.Array) -> jax.Array:
    """Convert a unit quaternion to a 3x3 rotation matrix.

    Uses the bilinear product form (Diebel eq. 125).

    Args:
        q (jax.Array): Quaternion of shape ``(4,)`` in scalar-first order.

    Returns:
        jnp.ndarray: Rotation matrix of shape ``(3, 3)``.
    """
    qs, q1, q2, q3 = q[0], q[1], q[2], q[3]

    return jnp.array([
        [qs*qs + q1*q1 - q2*q2 - q3*q3,  2.0*q1*q2 + 2.0*qs*q3,          2.0*q1*q3 - 2.0*qs*q2],
        [2.0*q1*q2 - 2.0*qs*q3,           qs*qs - q1*q1 + q2*q2 - q3*q3,  2.0*q2*q3 + 2.0*qs*q1],
        [2.0*q1*q3 + 2.0*qs*q2,           2.0*q2*q3 - 2.0*qs*q1,          qs*qs - q1*q1 - q2*q2 + q3*q3],
    ])


def rotation_matrix_to_quaternion(R: jax.Array) -> jax.Array:
    """Convert a 3x3 rotation matrix to a unit quaternion.

    Shepperd's method: the largest of the four candidate traces selects
    the branch through ``jax.lax.switch``.  The branch index depends only
    on ``R`` itself, so the function stays differentiable with ``jax.jvp``.

    Args:
        R (jax.Array): Rotation matrix of shape ``(3, 3)``.

    Returns:
        jnp.ndarray: Quaternion of shape ``(4,)`` in scalar-first order,
            with a non-negative scalar part for the first branch.
    """
    # Diebel eqs. 131-134
    qvec = jnp.array([
        1.0 + R[0, 0] + R[1, 1] + R[2, 2],
        1.0 + R[0, 0] - R[1, 1] - R[2, 2],
        1.0 - R[0, 0] + R[1, 1] - R[2, 2],
        1.0 - R[0, 0] - R[1, 1] + R[2, 2],
    ])

    ind_max = jnp.argmax(qvec)
    sq = jnp.sqrt(qvec[ind_max])

    def _w_largest(_):
        return 0.5 * jnp.array([
            sq,
            (R[1, 2] - R[2, 1]) / sq,
            (R[2, 0] - R[0, 2]) / sq,
            (R[0, 1] - R[1, 0]) / sq,
        ])

    def _x_largest(_):
        return 0.5 * jnp.array([
            (R[1, 2] - R[2, 1]) / sq,
            sq,
            (R[0, 1] + R[1, 0]) / sq,
            (R[2, 0] + R[0, 2]) / sq,
        ])

    def _y_largest(_):
        return 0.5 * jnp.array([
            (R[2, 0] - R[0, 2]) / sq,
            (R[0, 1] + R[1, 0]) / sq,
            sq,
            (R[1, 2] + R[2, 1]) / sq,
        ])

    def _z_largest(_):
        return 0.5 * jnp.array([
            (R[0, 1] - R[1, 0]) / sq,
            (R[2, 0] + R[0, 2]) / sq,
            (R[1, 2] + R[2, 1]) / sq,
            sq,
        ])

    return jax.lax.switch(ind_max, [_w_largest, _x_largest, _y_largest, _z_largest], None)

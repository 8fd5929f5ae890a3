"""Cubic Hermite dense output.

An accepted integration step is summarised by the state and its derivative
at both ends, an :class:`~odjax.integrators.InterpolationSegment`.  The
cubic Hermite polynomial through those four quantities reproduces the
step's end points exactly and approximates the solution in between to
third order in the step size.

With ``h = t_end - t_start`` and ``theta = (t - t_start) / h``::

    y(t) = (1 - theta) y0 + theta y1
           + theta (theta - 1) [(1 - 2 theta)(y1 - y0)
                                + (theta - 1) h f0 + theta h f1]

The formula holds unchanged for backward steps (negative ``h``).
"""

from __future__ import annotations

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from odjax.config import get_dtype
from odjax.integrators._types import InterpolationSegment, StepResult


def segment_from_step(t: ArrayLike, state: ArrayLike, result: StepResult) -> InterpolationSegment:
    """Build the dense-output segment of an accepted step.

    Args:
        t: Time at the start of the step.
        state: State at the start of the step.
        result: Result of :func:`~odjax.integrators.dp54_step` taken from
            ``(t, state)``.

    Returns:
        InterpolationSegment: Segment covering ``[t, t + result.dt_used]``.
    """
    dtype = get_dtype()
    t = jnp.asarray(t, dtype=dtype)
    return InterpolationSegment(
        t_start=t,
        t_end=t + result.dt_used,
        y_start=jnp.asarray(state, dtype=dtype),
        y_end=result.state,
        dy_start=result.dstate_start,
        dy_end=result.dstate_end,
    )


def interpolate_segment(segment: InterpolationSegment, t: ArrayLike) -> tuple[Array, Array]:
    """Evaluate a segment's interpolant and its time derivative.

    Args:
        segment: Dense-output segment.
        t: Evaluation time, normally within the segment.

    Returns:
        tuple[Array, Array]: ``(y, dy)`` at *t*.
    """
    h = segment.t_end - segment.t_start
    theta = (jnp.asarray(t, dtype=get_dtype()) - segment.t_start) / h

    y0, y1 = segment.y_start, segment.y_end
    f0, f1 = segment.dy_start, segment.dy_end
    dy01 = y1 - y0

    bracket = (1.0 - 2.0 * theta) * dy01 + (theta - 1.0) * h * f0 + theta * h * f1
    y = (1.0 - theta) * y0 + theta * y1 + theta * (theta - 1.0) * bracket

    # d/dtheta of the polynomial, divided by h
    dbracket = -2.0 * dy01 + h * f0 + h * f1
    dy_dtheta = (dy01 + (2.0 * theta - 1.0) * bracket
                 + theta * (theta - 1.0) * dbracket)

    return y, dy_dtheta / h

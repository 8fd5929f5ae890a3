"""Type definitions for the numerical integrator.

- :class:`StepResult`: output of :func:`~odjax.integrators.dp54_step`,
  carrying the state and its derivative at both ends of the accepted step
  so that the step can be turned into a dense-output segment.
- :class:`AdaptiveConfig`: adaptive step-size control settings.
- :class:`InterpolationSegment`: cubic Hermite dense output over one
  accepted step.

All types are :class:`~typing.NamedTuple` instances, which JAX treats as
pytrees automatically.
"""

from __future__ import annotations

from typing import NamedTuple

from jax import Array


class StepResult(NamedTuple):
    """Result of a single integrator step.

    Attributes:
        state: State vector at time ``t + dt_used``.
        dt_used: Actual timestep taken. May be smaller in magnitude than the
            requested ``dt`` if trial steps were rejected.
        error_estimate: Normalized error estimate. A value <= 1.0 means the
            step met the tolerance.
        dt_next: Suggested timestep for the next step.
        dstate_start: State derivative at ``t``.
        dstate_end: State derivative at ``t + dt_used``.
    """

    state: Array
    dt_used: Array
    error_estimate: Array
    dt_next: Array
    dstate_start: Array
    dstate_end: Array


class AdaptiveConfig(NamedTuple):
    """Configuration for adaptive step-size control.

    Attributes:
        abs_tol: Absolute error tolerance per component.
        rel_tol: Relative error tolerance per component.
        safety_factor: Multiplicative safety factor applied to step-size
            predictions.
        min_scale_factor: Minimum allowed ratio ``dt_next / dt_used``.
        max_scale_factor: Maximum allowed ratio ``dt_next / dt_used``.
        min_step: Absolute minimum step size. A trial step this small is
            accepted regardless of error.
        max_step: Absolute maximum step size.
        max_step_attempts: Maximum number of trial steps before accepting
            the last one regardless.
    """

    abs_tol: float = 1e-6
    rel_tol: float = 1e-3
    safety_factor: float = 0.9
    min_scale_factor: float = 0.2
    max_scale_factor: float = 10.0
    min_step: float = 1e-12
    max_step: float = 900.0
    max_step_attempts: int = 10


class InterpolationSegment(NamedTuple):
    """Dense output over one integration step.

    The segment covers ``[t_start, t_end]`` in integration order: for a
    backward integration ``t_end < t_start``.  Times are seconds from the
    reference epoch of the integration.

    Attributes:
        t_start: Time at the start of the step.
        t_end: Time at the end of the step.
        y_start: State at ``t_start``.
        y_end: State at ``t_end``.
        dy_start: State derivative at ``t_start``.
        dy_end: State derivative at ``t_end``.
    """

    t_start: Array
    t_end: Array
    y_start: Array
    y_end: Array
    dy_start: Array
    dy_end: Array

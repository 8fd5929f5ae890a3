"""Numerical ODE integration with dense output.

- :func:`dp54_step` -- Dormand-Prince 5(4) adaptive step returning the
  state derivative at both ends of the accepted step.
- :func:`segment_from_step` / :func:`interpolate_segment` -- cubic Hermite
  dense output over an accepted step.

The step function follows the interface::

    result = dp54_step(dynamics, t, state, dt)

where ``dynamics(t, x) -> dx`` defines the ODE right-hand side, and the
result is a :class:`StepResult` named tuple.
"""

from odjax.integrators._types import AdaptiveConfig, InterpolationSegment, StepResult
from odjax.integrators.dense import interpolate_segment, segment_from_step
from odjax.integrators.dp54 import dp54_step

__all__ = [
    "AdaptiveConfig",
    "InterpolationSegment",
    "StepResult",
    "dp54_step",
    "interpolate_segment",
    "segment_from_step",
]

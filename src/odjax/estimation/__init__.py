"""Sensitivity computation for orbit determination.

- :class:`DifferentiableStateConverter`: cached forward-mode differentiable
  states sized to the parameters of each force model.
- :class:`ParameterDriver` and the :class:`ForceModel` protocol.
- :func:`differentiate_state`: finite-difference state Jacobians.
"""

from .converter import DifferentiableAttitude, DifferentiableState, DifferentiableStateConverter
from .finite_differences import differentiate_state, element_steps
from .parameters import ForceModel, ParameterDriver, count_selected

__all__ = [
    "DifferentiableAttitude",
    "DifferentiableState",
    "DifferentiableStateConverter",
    "ForceModel",
    "ParameterDriver",
    "count_selected",
    "differentiate_state",
    "element_steps",
]

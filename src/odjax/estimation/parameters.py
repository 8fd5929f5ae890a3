"""Force-model parameters.

A :class:`ParameterDriver` is a named scalar parameter of a force model
(a drag coefficient, a reflection coefficient, a thrust level) that an
orbit determination may estimate.  Only *selected* drivers become free
variables of the differentiable states built by
:class:`~odjax.estimation.DifferentiableStateConverter`.

Any object with an ordered ``parameter_drivers`` sequence satisfies the
:class:`ForceModel` protocol.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Protocol, runtime_checkable


class ParameterDriver:
    """Named scalar parameter with bounds and an estimation flag.

    Values assigned outside ``[min_value, max_value]`` are clamped into
    the bounds.

    Args:
        name: Parameter name.
        reference_value: Reference (a priori) value, also the initial value.
        scale: Scaling factor used for normalized values. Must be non-zero.
        min_value: Lower bound. Default: ``-inf``.
        max_value: Upper bound. Default: ``+inf``.
        selected: Whether the parameter is estimated. Default: ``False``.

    Raises:
        ValueError: If *scale* is zero or the bounds are inverted.

    Examples:
        ```python
        from odjax.estimation import ParameterDriver
        cd = ParameterDriver("drag coefficient", 2.2, scale=1.0, min_value=0.0)
        cd.selected = True
        cd.value = -1.0
        cd.value   # 0.0, clamped
        ```
    """

    def __init__(
        self,
        name: str,
        reference_value: float,
        scale: float = 1.0,
        min_value: float = -math.inf,
        max_value: float = math.inf,
        selected: bool = False,
    ) -> None:
        if scale == 0.0:
            raise ValueError(f"Scale of parameter {name!r} must be non-zero")
        if min_value > max_value:
            raise ValueError(
                f"Bounds of parameter {name!r} are inverted: [{min_value}, {max_value}]"
            )
        self.name = name
        self.reference_value = float(reference_value)
        self.scale = float(scale)
        self.min_value = float(min_value)
        self.max_value = float(max_value)
        self.selected = selected
        self._value = self._clamp(self.reference_value)

    def _clamp(self, value: float) -> float:
        return min(max(float(value), self.min_value), self.max_value)

    @property
    def value(self) -> float:
        """Current value."""
        return self._value

    @value.setter
    def value(self, value: float) -> None:
        self._value = self._clamp(value)

    @property
    def normalized_value(self) -> float:
        """``(value - reference_value) / scale``."""
        return (self._value - self.reference_value) / self.scale

    @normalized_value.setter
    def normalized_value(self, normalized: float) -> None:
        self.value = self.reference_value + self.scale * normalized

    def reset(self) -> None:
        """Set the value back to the reference value."""
        self.value = self.reference_value

    def __repr__(self):
        flag = ", selected" if self.selected else ""
        return f"ParameterDriver({self.name!r}, value={self._value}{flag})"


@runtime_checkable
class ForceModel(Protocol):
    """Anything exposing an ordered sequence of parameter drivers."""

    @property
    def parameter_drivers(self) -> Sequence[ParameterDriver]: ...


def count_selected(force_model: ForceModel) -> int:
    """Return the number of selected drivers of *force_model*."""
    return sum(1 for driver in force_model.parameter_drivers if driver.selected)

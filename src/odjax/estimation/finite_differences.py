"""Finite-difference Jacobians of functions of a spacecraft state.

:func:`differentiate_state` perturbs each equinoctial element of a state
with a central stencil, rebuilds the attitude for every perturbed orbit and
evaluates a user function on the resulting states.  It is the reference
against which the automatic-differentiation partials of
:class:`~odjax.estimation.DifferentiableStateConverter` are checked.

Exceptions raised by the state function propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from odjax.config import get_dtype
from odjax.propagation import AttitudeProvider, SpacecraftState

# Central difference weights c_k for offsets +/- k h, k = 1..n/2:
# f'(x) ~ sum_k c_k (f(x + k h) - f(x - k h)) / h
_CENTRAL_WEIGHTS = {
    2: (1.0 / 2.0,),
    4: (2.0 / 3.0, -1.0 / 12.0),
    6: (3.0 / 4.0, -3.0 / 20.0, 1.0 / 60.0),
    8: (4.0 / 5.0, -1.0 / 5.0, 4.0 / 105.0, -1.0 / 280.0),
}


def element_steps(state: SpacecraftState, position_scale: float = 1.0) -> Array:
    """Default finite-difference steps for the equinoctial elements.

    A change of ``position_scale`` metres in the semi-major axis, and the
    matching angular change ``position_scale / a`` for the other elements.

    Args:
        state: Reference state.
        position_scale: Position perturbation scale. Units: *m*

    Returns:
        Array: Steps for ``[a, ex, ey, hx, hy, lv]``.
    """
    a = state.orbit.elements[0]
    ratio = position_scale / a
    return jnp.array([position_scale, ratio, ratio, ratio, ratio, ratio], dtype=get_dtype())


def differentiate_state(
    fn: Callable[[SpacecraftState], ArrayLike],
    state: SpacecraftState,
    attitude_provider: AttitudeProvider,
    steps: Sequence[float] | ArrayLike | None = None,
    position_scale: float = 1.0,
    n_points: int = 4,
) -> Array:
    """Jacobian of *fn* with respect to the equinoctial elements of *state*.

    Args:
        fn: Function of a spacecraft state returning an array of shape ``(m,)``
            (or a scalar).
        state: State at which the Jacobian is evaluated.
        attitude_provider: Attitude law applied to every perturbed orbit.
        steps: Step of each element. Default: :func:`element_steps` with
            *position_scale*.
        position_scale: Position perturbation scale used for the default
            steps. Units: *m*
        n_points: Number of stencil points, one of 2, 4, 6, 8.

    Returns:
        Array: Jacobian of shape ``(m, 6)``.

    Raises:
        ValueError: If *n_points* is not supported.

    Examples:
        ```python
        from odjax.estimation import differentiate_state
        jac = differentiate_state(lambda s: s.orbit.position(), state, LofAttitude())
        jac.shape   # (3, 6)
        ```
    """
    if n_points not in _CENTRAL_WEIGHTS:
        raise ValueError(
            f"Unsupported stencil size {n_points}. Must be one of: 2, 4, 6, 8"
        )
    weights = _CENTRAL_WEIGHTS[n_points]

    if steps is None:
        steps = element_steps(state, position_scale)
    steps = jnp.asarray(steps, dtype=get_dtype())

    orbit = state.orbit
    elements = orbit.elements

    def evaluate(j, offset):
        perturbed = orbit.with_elements(elements.at[j].add(offset))
        attitude = attitude_provider(perturbed, perturbed.epoch, perturbed.frame)
        value = fn(SpacecraftState(perturbed, attitude, state.mass))
        return jnp.atleast_1d(jnp.asarray(value, dtype=get_dtype()))

    columns = []
    for j in range(6):
        h = steps[j]
        derivative = 0.0
        for k, weight in enumerate(weights, start=1):
            derivative = derivative + weight * (evaluate(j, k * h) - evaluate(j, -k * h))
        columns.append(derivative / h)

    return jnp.stack(columns, axis=-1)

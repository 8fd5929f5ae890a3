"""Numerical propagation of equinoctial orbits.

:class:`NumericalPropagator` integrates the raw 7-vector
``[a, ex, ey, hx, hy, lv, mass]`` with the adaptive Dormand-Prince step,
hands every accepted step to an
:class:`~odjax.propagation.IntegratedEphemeris` and returns the state at the
target date.  The ephemeris of the last run stays available for random
access over the integrated interval.

The dynamics is a closure ``dynamics(t, y) -> dy`` with ``t`` in seconds
from the initial epoch; :func:`create_keplerian_dynamics` builds the
two-body one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import jax
import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from odjax.constants import GM_EARTH
from odjax.epoch import Epoch
from odjax.errors import PropagationError
from odjax.integrators import AdaptiveConfig, dp54_step, segment_from_step
from odjax.orbits import eqn_keplerian_rate

from ._types import AttitudeProvider, SpacecraftState
from .ephemeris import IntegratedEphemeris

logger = logging.getLogger(__name__)


def create_keplerian_dynamics(gm: float = GM_EARTH) -> Callable[[ArrayLike, ArrayLike], Array]:
    """Create the two-body dynamics of the raw equinoctial state.

    Returns a closure ``dynamics(t, y) -> dy`` where *y* is
    ``[a, ex, ey, hx, hy, lv, mass]``.  Only ``lv`` varies; mass is
    constant.

    Args:
        gm: Gravitational parameter of the central body. Units: *m^3/s^2*

    Returns:
        Dynamics function compatible with :func:`~odjax.integrators.dp54_step`.

    Examples:
        ```python
        import jax.numpy as jnp
        from odjax.integrators import dp54_step
        from odjax.propagation import create_keplerian_dynamics
        dynamics = create_keplerian_dynamics()
        y0 = jnp.array([6878e3, 0.0, 0.0, 0.0, 0.0, 0.0, 1000.0])
        result = dp54_step(dynamics, 0.0, y0, 60.0)
        ```
    """

    def dynamics(t: ArrayLike, y: ArrayLike) -> Array:
        return jnp.concatenate([eqn_keplerian_rate(y[:6], gm), jnp.zeros(1, dtype=y.dtype)])

    return dynamics


class NumericalPropagator:
    """Adaptive numerical propagator recording a dense-output ephemeris.

    The gravitational parameter of a run is the one of the initial orbit:
    it drives the default two-body dynamics and is carried by every state
    rebuilt from the ephemeris.

    Args:
        attitude_provider: Attitude law of the propagated states.
        dynamics: Raw-state dynamics ``f(t, y)``. Default: two-body
            dynamics with the gravitational parameter of the initial orbit.
        config: Step-size control settings.
        initial_step: Magnitude of the first trial step. Units: *s*
        max_steps: Maximum number of accepted steps per run.
    """

    def __init__(
        self,
        attitude_provider: AttitudeProvider,
        dynamics: Callable[[ArrayLike, ArrayLike], Array] | None = None,
        config: AdaptiveConfig | None = None,
        initial_step: float = 60.0,
        max_steps: int = 100_000,
    ) -> None:
        if config is None:
            config = AdaptiveConfig(abs_tol=1e-10, rel_tol=1e-12)

        self._attitude_provider = attitude_provider
        self._dynamics = dynamics
        self._config = config
        self._initial_step = float(initial_step)
        self._max_steps = max_steps
        # Jitted steps keyed by gm; a single None entry for custom dynamics
        self._steps: dict[float | None, Callable] = {}
        self._ephemeris: IntegratedEphemeris | None = None

    def _step_for(self, gm: float) -> Callable:
        key = None if self._dynamics is not None else gm
        step = self._steps.get(key)
        if step is None:
            dynamics = self._dynamics
            if dynamics is None:
                dynamics = create_keplerian_dynamics(gm)
            config = self._config
            step = jax.jit(lambda t, y, dt: dp54_step(dynamics, t, y, dt, config))
            self._steps[key] = step
        return step

    @property
    def ephemeris(self) -> IntegratedEphemeris:
        """Ephemeris of the last propagation run.

        Raises:
            PropagationError: If nothing was propagated yet.
        """
        if self._ephemeris is None:
            raise PropagationError("No propagation run has been performed")
        return self._ephemeris

    def propagate(self, state: SpacecraftState, target: Epoch) -> SpacecraftState:
        """Propagate *state* to *target*, forward or backward in time.

        Args:
            state: Initial state.
            target: Target date, different from the initial date.

        Returns:
            SpacecraftState: State at *target*.

        Raises:
            ValueError: If *target* equals the initial date.
            PropagationError: If the step limit is reached.
        """
        reference = state.epoch
        duration = float(target - reference)
        if duration == 0.0:
            raise ValueError("Target date equals the initial date")

        direction = 1.0 if duration > 0.0 else -1.0
        gm = float(state.orbit.gm)
        step = self._step_for(gm)
        ephemeris = IntegratedEphemeris()

        t = 0.0
        y = state.to_vector()
        dt = direction * min(self._initial_step, abs(duration))
        steps = 0
        while True:
            if steps >= self._max_steps:
                raise PropagationError(
                    f"Step limit of {self._max_steps} reached at t = {t} s "
                    f"of a {duration} s propagation"
                )
            result = step(t, y, dt)
            segment = segment_from_step(t, y, result)
            t_next = float(segment.t_end)
            remaining = duration - t_next
            is_last = direction * remaining <= 0.0 or abs(remaining) < 1e-9
            ephemeris.handle_step(segment, is_last)
            steps += 1
            t, y = t_next, result.state
            if is_last:
                break
            dt_next = float(result.dt_next)
            dt = direction * min(abs(dt_next), abs(remaining))

        ephemeris.initialize(reference, state.frame, gm, self._attitude_provider)
        self._ephemeris = ephemeris
        logger.debug("Propagated %s s in %d steps", duration, steps)

        # The last step ends on the ephemeris bound, within rounding of target
        return ephemeris.propagate(ephemeris.max_date if direction > 0 else ephemeris.min_date)

"""Differentiable spacecraft states for force-model Jacobians.

:class:`DifferentiableStateConverter` turns a :class:`SpacecraftState`
into a :class:`DifferentiableState` whose components carry first-order
partial derivatives with respect to ``F`` free state variables: the six
equinoctial elements (variables ``0..5``) and optionally the mass
(variable ``6``).  A force model evaluated on such a state produces a rate
whose partials are the rows of the state Jacobian.

Force models with ``P`` selected parameters need ``F + P`` free
variables.  The state for ``P = 0`` is built once, differentiating the
attitude law through :func:`odjax.differentiation.apply`; states for
``P > 0`` are derived from it by structural extension (existing partials
copied, new partials zero) and cached by ``P``.  Parameter variables are
obtained from :meth:`DifferentiableStateConverter.get_parameters` and take
the indices ``F, F + 1, ...`` in the order of the selected drivers.

The converter belongs to one estimation pass; its cache is not guarded
against concurrent population.  A given force model is expected to
present the same parameter list for the whole lifetime of a converter.

Typical usage::

    converter = DifferentiableStateConverter(state, 6, LofAttitude())
    dstate = converter.get_state(force_model)
    params = converter.get_parameters(dstate, force_model)
    rate = force_model.acceleration(dstate, params)
    d_state, d_params = converter.split_partials(rate)
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from jax import Array

from odjax.coordinates import state_eqn_to_eci
from odjax.differentiation import DifferentiableValue, apply, constant, variable, variables
from odjax.epoch import Epoch
from odjax.errors import PropagationError
from odjax.orbits import accel_keplerian
from odjax.propagation import AttitudeProvider, SpacecraftState

from .parameters import ForceModel, count_selected

logger = logging.getLogger(__name__)


class DifferentiableAttitude(NamedTuple):
    """Attitude whose components carry partial derivatives.

    Attributes:
        rotation: Quaternion ``[w, x, y, z]``, shape ``(4,)``.
        rotation_rate: Rotation rate in body axes, shape ``(3,)``.
        rotation_acceleration: Rotation acceleration in body axes, shape ``(3,)``.
    """

    rotation: DifferentiableValue
    rotation_rate: DifferentiableValue
    rotation_acceleration: DifferentiableValue

    def extend(self, free_parameters: int) -> DifferentiableAttitude:
        return DifferentiableAttitude(*(component.extend(free_parameters) for component in self))


class DifferentiableState(NamedTuple):
    """Spacecraft state whose components carry partial derivatives.

    All differentiable components share the same number of free variables.

    Attributes:
        elements: Equinoctial elements ``[a, ex, ey, hx, hy, lv]``.
        position: Position, shape ``(3,)``.
        velocity: Velocity, shape ``(3,)``.
        acceleration: Keplerian acceleration, shape ``(3,)``.
        attitude: Differentiable attitude.
        mass: Mass, scalar.
        epoch: Date of the state.
        frame: Frame label.
        gm: Gravitational parameter.
    """

    elements: DifferentiableValue
    position: DifferentiableValue
    velocity: DifferentiableValue
    acceleration: DifferentiableValue
    attitude: DifferentiableAttitude
    mass: DifferentiableValue
    epoch: Epoch
    frame: str
    gm: float

    @property
    def free_parameters(self) -> int:
        return self.mass.free_parameters

    def extend(self, free_parameters: int) -> DifferentiableState:
        """Return this state with every component extended to *free_parameters*.

        Raises:
            ValueError: If *free_parameters* is smaller than the current count.
        """
        return self._replace(
            elements=self.elements.extend(free_parameters),
            position=self.position.extend(free_parameters),
            velocity=self.velocity.extend(free_parameters),
            acceleration=self.acceleration.extend(free_parameters),
            attitude=self.attitude.extend(free_parameters),
            mass=self.mass.extend(free_parameters),
        )


class DifferentiableStateConverter:
    """Build and cache differentiable states sized per force model.

    Args:
        state: State to differentiate around.
        free_state_parameters: ``6`` (orbital elements) or ``7`` (elements
            and mass).
        attitude_provider: Attitude law, differentiated through ``jax.jvp``.

    Raises:
        ValueError: If *free_state_parameters* is neither 6 nor 7.
        PropagationError: If the attitude law fails.
    """

    def __init__(self, state: SpacecraftState, free_state_parameters: int,
                 attitude_provider: AttitudeProvider) -> None:
        if free_state_parameters not in (6, 7):
            raise ValueError(
                f"free_state_parameters must be 6 or 7, got {free_state_parameters}"
            )
        self._free_state_parameters = free_state_parameters
        self._states: dict[int, DifferentiableState] = {
            0: self._build_base_state(state, free_state_parameters, attitude_provider)
        }
        logger.debug("Built differentiable state with %d free variables", free_state_parameters)

    @staticmethod
    def _build_base_state(state, free, attitude_provider):
        orbit = state.orbit
        gm = orbit.gm

        elements = variables(orbit.elements, free)
        mass = variable(free, 6, state.mass) if free > 6 else constant(free, state.mass)

        pv = apply(lambda el: state_eqn_to_eci(el, gm), elements)
        acceleration = apply(lambda el: accel_keplerian(state_eqn_to_eci(el, gm)[:3], gm), elements)

        def attitude_of(el):
            return attitude_provider(orbit._replace(elements=el), orbit.epoch, orbit.frame)

        try:
            attitude = apply(attitude_of, elements)
        except Exception as err:
            raise PropagationError(
                f"Attitude computation failed for the differentiable state at {orbit.epoch}"
            ) from err

        return DifferentiableState(
            elements=elements,
            position=pv[:3],
            velocity=pv[3:6],
            acceleration=acceleration,
            attitude=DifferentiableAttitude(*attitude),
            mass=mass,
            epoch=orbit.epoch,
            frame=orbit.frame,
            gm=gm,
        )

    @property
    def free_state_parameters(self) -> int:
        """Number ``F`` of free state variables."""
        return self._free_state_parameters

    @property
    def cached_parameter_counts(self) -> tuple[int, ...]:
        """Parameter counts for which a state has been built."""
        return tuple(sorted(self._states))

    def get_state(self, force_model: ForceModel) -> DifferentiableState:
        """Return the differentiable state sized for *force_model*.

        The state has ``F + P`` free variables where ``P`` is the number of
        selected drivers of *force_model*.  It is built on first request
        by extending the base state and reused afterwards.

        Args:
            force_model: Force model the state is meant for.

        Returns:
            DifferentiableState: Cached state for ``P`` parameters.
        """
        n_params = count_selected(force_model)
        state = self._states.get(n_params)
        if state is None:
            state = self._states[0].extend(self._free_state_parameters + n_params)
            self._states[n_params] = state
            logger.debug("Extended differentiable state for %d parameters", n_params)
        return state

    def get_parameters(self, state: DifferentiableState,
                       force_model: ForceModel) -> list[DifferentiableValue]:
        """Return the force model's parameters as differentiable scalars.

        Selected drivers become free variables with indices ``F, F + 1, ...``
        in declaration order; other drivers become constants.  The number
        of free variables is taken from *state*.

        Args:
            state: State obtained from :meth:`get_state` for *force_model*.
            force_model: Force model providing the drivers.

        Returns:
            list[DifferentiableValue]: One value per driver, in driver order.
        """
        free = state.free_parameters
        index = self._free_state_parameters
        parameters = []
        for driver in force_model.parameter_drivers:
            if driver.selected:
                parameters.append(variable(free, index, driver.value))
                index += 1
            else:
                parameters.append(constant(free, driver.value))
        return parameters

    def split_partials(self, value: DifferentiableValue) -> tuple[Array, Array]:
        """Split partials into the state block and the parameter block.

        Args:
            value: Result computed from a state of this converter.

        Returns:
            tuple[Array, Array]: Partials with respect to the ``F`` state
                variables and with respect to the parameters.
        """
        free = self._free_state_parameters
        return value.partials[..., :free], value.partials[..., free:]

    def __repr__(self):
        return (f"DifferentiableStateConverter(free_state_parameters="
                f"{self._free_state_parameters}, cached={self.cached_parameter_counts})")

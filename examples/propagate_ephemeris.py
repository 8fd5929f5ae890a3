# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "odjax"]
#
# [tool.uv.sources]
# odjax = { path = ".." }
# ///
"""Propagate an orbit, sample its ephemeris and compute force-model partials.

Builds a Keplerian orbit, integrates it with the adaptive Dormand-Prince
propagator, queries the resulting bounded ephemeris at regular intervals
(in UTC and TT) and evaluates the Jacobian of a scaled two-body
acceleration with respect to the orbit elements and a scale coefficient.

Requires odjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/propagate_ephemeris.py [OPTIONS]

Examples:
    # One orbit of a 500 km circular orbit, sampled every 10 minutes
    uv run examples/propagate_ephemeris.py

    # Backward propagation of an eccentric orbit
    uv run examples/propagate_ephemeris.py --duration -7200 --eccentricity 0.1
"""

import time
from typing import Annotated

import jax.numpy as jnp
import typer

from odjax import Epoch, NumericalPropagator, Orbit, SpacecraftState
from odjax.attitudes import LofAttitude
from odjax.constants import R_EARTH
from odjax.errors import DateOutOfRangeError
from odjax.estimation import DifferentiableStateConverter, ParameterDriver


class ScaledGravity:
    """Two-body acceleration per unit mass, scaled by an estimated coefficient."""

    def __init__(self) -> None:
        self._drivers = [ParameterDriver("gravity scale", 1.0, selected=True)]

    @property
    def parameter_drivers(self):
        return self._drivers

    def acceleration(self, state, parameters):
        return parameters[0] * state.acceleration / state.mass


def main(
    altitude: Annotated[float, typer.Option(help="Semi-major axis minus Earth radius [km]")] = 500.0,
    eccentricity: Annotated[float, typer.Option(help="Eccentricity")] = 0.0,
    inclination: Annotated[float, typer.Option(help="Inclination [deg]")] = 51.6,
    duration: Annotated[
        float | None, typer.Option(help="Propagation duration [s], negative for backward")
    ] = None,
    sample: Annotated[float, typer.Option(help="Ephemeris sampling interval [s]")] = 600.0,
) -> None:
    """Propagate an orbit and sample its ephemeris."""
    epoch = Epoch(2024, 1, 1, 12, 0, 0.0)
    a = R_EARTH + altitude * 1e3
    orbit = Orbit.from_keplerian(
        jnp.array([a, eccentricity, inclination, 0.0, 0.0, 0.0]), epoch, use_degrees=True
    )
    if duration is None:
        duration = float(orbit.keplerian_period())
    state = SpacecraftState.from_orbit(orbit, LofAttitude(), 1000.0)

    # ── Propagation ──────────────────────────────────────────────────────
    print(f"Propagating {duration:.1f} s from {epoch} (TT {epoch.isoformat('TT')})")
    t0 = time.perf_counter()
    propagator = NumericalPropagator(LofAttitude())
    final = propagator.propagate(state, epoch + duration)
    ephemeris = propagator.ephemeris
    print(f"  {ephemeris.segment_count} steps in {time.perf_counter() - t0:.1f}s")
    print(f"  Ephemeris covers [{ephemeris.min_date}, {ephemeris.max_date}]")

    # ── Ephemeris sampling ───────────────────────────────────────────────
    print("\nSamples:")
    t = 0.0
    while abs(t) <= abs(duration):
        sampled = ephemeris.propagate(epoch + t)
        r = jnp.linalg.norm(sampled.orbit.position())
        print(f"  {sampled.epoch}  lv = {float(sampled.orbit.elements[5]):9.5f} rad  "
              f"alt = {(float(r) - R_EARTH) / 1e3:8.3f} km")
        t += sample if duration > 0 else -sample

    try:
        ephemeris.propagate(ephemeris.max_date + 60.0)
    except DateOutOfRangeError as err:
        print(f"  Out of range query rejected: {err}")

    # ── Force-model partials ─────────────────────────────────────────────
    print("\nPartials of the scaled two-body acceleration at the final state:")
    force_model = ScaledGravity()
    converter = DifferentiableStateConverter(final, 7, LofAttitude())
    dstate = converter.get_state(force_model)
    rate = force_model.acceleration(dstate, converter.get_parameters(dstate, force_model))
    d_state, d_params = converter.split_partials(rate)
    print(f"  d(accel)/d(state) shape {d_state.shape}")
    print(f"  d(accel)/d(scale) = {d_params[:, 0]}")


if __name__ == "__main__":
    typer.run(main)

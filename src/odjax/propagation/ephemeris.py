"""Bounded ephemeris built from a numerical integration.

:class:`IntegratedEphemeris` records the dense-output segments of an
integration run, one per accepted step, and answers state queries at any
date inside the integrated interval by local cubic Hermite interpolation.

The integrated raw state is the 7-vector ``[a, ex, ey, hx, hy, lv, mass]``
with time measured in seconds from a reference epoch.  The orbit frame,
gravitational parameter and attitude law that turn a raw vector back into
a :class:`~odjax.propagation.SpacecraftState` are fixed once by
:meth:`IntegratedEphemeris.initialize`.  Attitude is never stored: it is
recomputed from the interpolated orbit on each query.

Integration may run forward or backward in time; the ephemeris bounds are
always ordered so that ``min_date <= max_date``.

Queries do not modify the ephemeris, so an initialized ephemeris can be
shared between threads for read-only use.

Typical usage::

    ephemeris = IntegratedEphemeris()
    for segment in segments:
        ephemeris.handle_step(segment)
    ephemeris.initialize(epoch0, "GCRF", GM_EARTH, LofAttitude())
    state = ephemeris.propagate(epoch0 + 1800.0)
"""

from __future__ import annotations

import logging

import jax.numpy as jnp

from odjax.config import get_dtype
from odjax.epoch import Epoch
from odjax.errors import DateOutOfRangeError, PropagationError
from odjax.integrators import InterpolationSegment, interpolate_segment

from ._types import AttitudeProvider, Orbit, SpacecraftState

logger = logging.getLogger(__name__)


class IntegratedEphemeris:
    """Ephemeris answering queries from recorded dense-output segments."""

    def __init__(self) -> None:
        self._segments: list[InterpolationSegment] = []
        # Segment end times multiplied by the integration direction, so
        # that they are increasing for both forward and backward runs;
        # frozen into an array by initialize for the segment search
        self._ends: list[float] = []
        self._direction = 0
        self._clear_context()

    def _clear_context(self):
        self._reference_epoch: Epoch | None = None
        self._frame: str | None = None
        self._gm: float | None = None
        self._attitude_provider: AttitudeProvider | None = None
        self._search_ends = None
        self._min_date: Epoch | None = None
        self._max_date: Epoch | None = None

    # Recording

    def handle_step(self, segment: InterpolationSegment, is_last: bool = False) -> None:
        """Record the dense output of one accepted integration step.

        Steps must arrive in integration order.  The direction of time is
        taken from the first segment.

        Args:
            segment: Dense-output segment of the step.
            is_last: Whether this is the final step of the run.

        Raises:
            ValueError: If the segment has zero length or runs against the
                direction of the previously recorded segments.
        """
        t_start = float(segment.t_start)
        t_end = float(segment.t_end)
        if t_end == t_start:
            raise ValueError(f"Zero-length integration step at t = {t_start} s")
        direction = 1 if t_end > t_start else -1

        if not self._segments:
            self._direction = direction
        elif direction != self._direction:
            raise ValueError(
                "Integration step direction changed within a run: "
                f"step [{t_start}, {t_end}] s after {len(self._segments)} steps"
            )

        self._segments.append(segment)
        self._ends.append(direction * t_end)

        if is_last:
            logger.debug(
                "Recorded %d integration steps over [%s, %s] s",
                len(self._segments), self.initial_time, self.final_time,
            )

    def initialize(self, reference_epoch: Epoch, frame: str, gm: float,
                   attitude_provider: AttitudeProvider) -> None:
        """Fix the context used to rebuild states and compute the date bounds.

        Args:
            reference_epoch: Epoch of integration time zero.
            frame: Label of the frame of the integrated orbit.
            gm: Gravitational parameter of the integrated orbit.
            attitude_provider: Attitude law evaluated on each query.

        Raises:
            PropagationError: If no integration step was recorded.
        """
        if not self._segments:
            raise PropagationError("Cannot initialize an ephemeris without integration steps")

        start = reference_epoch + self.initial_time
        end = reference_epoch + self.final_time
        if end < start:
            start, end = end, start

        self._reference_epoch = reference_epoch
        self._frame = frame
        self._gm = gm
        self._attitude_provider = attitude_provider
        self._search_ends = jnp.asarray(self._ends, dtype=get_dtype())
        self._min_date = start
        self._max_date = end

        logger.debug("Initialized ephemeris in %s over [%s, %s]", frame, start, end)

    def reset(self) -> None:
        """Drop every recorded segment and the initialization context."""
        self._segments.clear()
        self._ends.clear()
        self._direction = 0
        self._clear_context()
        logger.debug("Ephemeris reset")

    # Queries

    def _check_initialized(self):
        if self._reference_epoch is None:
            raise PropagationError("Ephemeris used before initialization")

    def propagate(self, epoch: Epoch) -> SpacecraftState:
        """Return the spacecraft state at *epoch*.

        Args:
            epoch: Query date, within ``[min_date, max_date]``.

        Returns:
            SpacecraftState: Interpolated orbit and mass, with attitude
                recomputed by the attitude law.

        Raises:
            DateOutOfRangeError: If *epoch* is outside the ephemeris bounds.
            PropagationError: If the ephemeris is not initialized or the
                attitude law fails.
        """
        self._check_initialized()
        if epoch < self._min_date or epoch > self._max_date:
            raise DateOutOfRangeError(epoch, self._min_date, self._max_date)

        t = float(epoch - self._reference_epoch)
        index = min(int(jnp.searchsorted(self._search_ends, self._direction * t, side="left")),
                    len(self._segments) - 1)
        y, _ = interpolate_segment(self._segments[index], t)

        orbit = Orbit(y[:6], epoch, self._frame, self._gm)
        try:
            attitude = self._attitude_provider(orbit, epoch, self._frame)
        except Exception as err:
            raise PropagationError(f"Attitude computation failed at {epoch}") from err

        return SpacecraftState(orbit, attitude, y[6])

    # Properties

    @property
    def min_date(self) -> Epoch:
        """Earliest date the ephemeris can be queried at."""
        self._check_initialized()
        return self._min_date

    @property
    def max_date(self) -> Epoch:
        """Latest date the ephemeris can be queried at."""
        self._check_initialized()
        return self._max_date

    @property
    def initial_time(self) -> float:
        """Integration start time, in seconds from the reference epoch."""
        if not self._segments:
            raise PropagationError("No integration step recorded")
        return float(self._segments[0].t_start)

    @property
    def final_time(self) -> float:
        """Integration end time, in seconds from the reference epoch."""
        if not self._segments:
            raise PropagationError("No integration step recorded")
        return float(self._segments[-1].t_end)

    @property
    def frame(self) -> str:
        self._check_initialized()
        return self._frame

    @property
    def gm(self) -> float:
        self._check_initialized()
        return self._gm

    @property
    def segment_count(self) -> int:
        return len(self._segments)

    def __repr__(self):
        if self._reference_epoch is None:
            return f"IntegratedEphemeris(<{len(self._segments)} steps, not initialized>)"
        return (f"IntegratedEphemeris({self._frame}, "
                f"[{self._min_date}, {self._max_date}], {len(self._segments)} steps)")

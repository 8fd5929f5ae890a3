"""The epoch module provides the ``Epoch`` class for representing instants in time.

An Epoch is an absolute instant on the continuous TAI axis, independent of
any calendar.  Internally it stores the integer Julian Day number, the
seconds elapsed since the start of that (noon-based) Julian day, and a
Kahan summation compensator, all on TAI.  Arithmetic (shift, difference)
is always done on this continuous axis; calendar representations in UTC,
TT, GPS or TAI are obtained by adding the scale offset provided by
:mod:`odjax.timescales`.

The Kahan compensator tracks floating-point rounding errors that accumulate
during repeated additions (e.g. time stepping in numerical integration),
preventing error growth from O(N) to O(1) machine epsilon.

The Epoch class is registered as a JAX pytree, making it compatible with
``jax.jit``, ``jax.vmap``, and ``jax.lax.scan``.  Arithmetic and comparison
methods use JAX operations and are traceable; calendar construction and
display go through the Python-level time scales and are not.
"""

from __future__ import annotations

import math
import re

import jax
import jax.numpy as jnp

from .config import get_dtype, get_epoch_eq_tolerance
from .constants import JD2000, SECONDS_PER_DAY
from .time import caldate_to_jd, jd_to_caldate, jd_to_mjd
from .timescales import TimeScale, get_time_scale

# Valid ISO 8601 epoch string patterns
_EPOCH_PATTERNS = [
    # YYYY-MM-DD
    re.compile(r'^(\d{4})-(\d{2})-(\d{2})$'),
    # YYYY-MM-DDTHH:MM:SSZ
    re.compile(r'^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})Z$'),
    # YYYY-MM-DDTHH:MM:SS.fffZ
    re.compile(r'^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})\.(\d+)Z$'),
]


class Epoch:
    """A single instant in time on the continuous TAI axis.

    The internal representation uses three private components:
        ``_jd`` (jnp.int32), ``_seconds`` and ``_kahan_c`` (configured float
        dtype), all on TAI.  ``tai_seconds()`` returns the continuous count
        of seconds since 2000-01-01T12:00:00 TAI.

    Calendar constructors take a ``time_scale`` keyword (default ``"UTC"``)
    naming the scale the calendar components are expressed in.

    Constructors:
        Epoch(2018, 1, 1)
        Epoch(2018, 1, 1, 12, 0, 0.0)
        Epoch(2018, 1, 1, 12, 0, 0.0, time_scale="TT")
        Epoch("2018-01-01T12:00:00Z")
        Epoch(other_epoch)
        Epoch.from_tai_seconds(5.7e8)
    """

    __slots__ = ('_jd', '_seconds', '_kahan_c')

    def __init__(self, *args: int | float | str | Epoch,
                 time_scale: str | TimeScale = "UTC") -> None:
        """Initialize Epoch. Supports multiple constructor forms.

        Args:
            *args: Either (year, month, day[, hour, minute, second]),
                a string in ISO 8601 format, or another Epoch instance.
            time_scale: Scale of the calendar components or string.
                Ignored when copying another Epoch. Default: ``"UTC"``.
        """
        dtype = get_dtype()
        self._jd = jnp.int32(0)
        self._seconds = dtype(0.0)
        self._kahan_c = dtype(0.0)

        if len(args) == 1:
            if isinstance(args[0], str):
                self._init_string(args[0], get_time_scale(time_scale))
            elif isinstance(args[0], Epoch):
                self._init_epoch(args[0])
            else:
                raise ValueError(f"Cannot construct Epoch from {type(args[0])}")
        elif 3 <= len(args) <= 6:
            self._init_date(get_time_scale(time_scale), *args)
        else:
            raise ValueError(
                "Epoch requires date components (3-6 args), a string, or an Epoch"
            )

    @classmethod
    def _from_internal(cls, jd, seconds, kahan_c):
        """Create an Epoch from raw JAX arrays without normalization.

        Used by pytree unflatten and arithmetic operators.
        """
        obj = object.__new__(cls)
        obj._jd = jd
        obj._seconds = seconds
        obj._kahan_c = kahan_c
        return obj

    @classmethod
    def from_tai_seconds(cls, tai_seconds: float) -> Epoch:
        """Create an Epoch from seconds elapsed since 2000-01-01T12:00:00 TAI.

        Args:
            tai_seconds (float): Location on the continuous TAI axis.

        Returns:
            Epoch: The corresponding instant.
        """
        dtype = get_dtype()
        days = math.floor(tai_seconds / SECONDS_PER_DAY)
        seconds = tai_seconds - days * SECONDS_PER_DAY
        return cls._from_internal(jnp.int32(JD2000 + days), dtype(seconds), dtype(0.0))

    def _init_date(self, scale, year, month, day, hour=0, minute=0, second=0.0):
        """Initialize from calendar date components expressed in *scale*."""
        jd_full = float(caldate_to_jd(year, month, day))

        jd_int = int(math.floor(jd_full))
        frac_day = jd_full - jd_int

        seconds = (frac_day * SECONDS_PER_DAY
                   + hour * 3600.0 + minute * 60.0 + second)

        # Move from the scale's label axis to TAI
        scale_time = (jd_int - JD2000) * SECONDS_PER_DAY + seconds
        seconds += scale.offset_to_tai(scale_time)

        dtype = get_dtype()
        self._jd = jnp.int32(jd_int)
        self._seconds = dtype(seconds)
        self._kahan_c = dtype(0.0)

        self._normalize()

    def _init_string(self, string, scale):
        """Initialize from an ISO 8601 string.

        Supported formats:
            - ``YYYY-MM-DD``
            - ``YYYY-MM-DDTHH:MM:SSZ``
            - ``YYYY-MM-DDTHH:MM:SS.fffZ``
        """
        for pattern in _EPOCH_PATTERNS:
            m = pattern.match(string)
            if m:
                groups = m.groups()
                year, month, day = int(groups[0]), int(groups[1]), int(groups[2])

                hour = 0
                minute = 0
                second = 0.0

                if len(groups) >= 6:
                    hour = int(groups[3])
                    minute = int(groups[4])
                    second = float(groups[5])

                if len(groups) == 7:
                    second += float(f"0.{groups[6]}")

                self._init_date(scale, year, month, day, hour, minute, second)
                return

        raise ValueError(
            f'Invalid Epoch string: "{string}" is not ISO 8601 compliant'
        )

    def _init_epoch(self, other):
        self._jd = other._jd
        self._seconds = other._seconds
        self._kahan_c = other._kahan_c

    def _normalize(self):
        """Normalize seconds to [0, 86400) by adjusting the Julian day number."""
        dtype = get_dtype()
        day_offset = jnp.int32(jnp.floor(self._seconds / SECONDS_PER_DAY))
        self._seconds = self._seconds - dtype(day_offset) * dtype(SECONDS_PER_DAY)
        self._jd = self._jd + day_offset

    def _compensated_seconds(self):
        return self._seconds - self._kahan_c

    # Arithmetic operators

    def __iadd__(self, delta: float) -> Epoch:
        """Add seconds to this epoch using Kahan compensated summation.

        Returns a new Epoch instance (Python rebinds the name on ``+=``);
        pytree leaves are immutable during tracing.

        Args:
            delta (float): Seconds to add.

        Returns:
            Epoch: New Epoch with delta seconds added.
        """
        dtype = get_dtype()
        delta = jnp.asarray(delta, dtype=dtype)
        y = delta - self._kahan_c
        t = self._seconds + y
        new_kahan_c = (t - self._seconds) - y

        day_offset = jnp.int32(jnp.floor(t / SECONDS_PER_DAY))
        new_seconds = t - dtype(day_offset) * dtype(SECONDS_PER_DAY)
        new_jd = self._jd + day_offset

        return Epoch._from_internal(new_jd, new_seconds, new_kahan_c)

    def __isub__(self, delta: float) -> Epoch:
        return self.__iadd__(-jnp.asarray(delta, dtype=get_dtype()))

    def __add__(self, delta: float) -> Epoch:
        """Return a new Epoch shifted by *delta* seconds."""
        return self.__iadd__(delta)

    def __sub__(self, other: Epoch | float) -> Epoch | jax.Array:
        """Subtract seconds or compute difference between Epochs.

        Args:
            other: If Epoch, returns the time difference in seconds.
                If numeric, returns a new Epoch with seconds subtracted.

        Returns:
            float or Epoch: Time difference in seconds, or new Epoch.
        """
        if isinstance(other, Epoch):
            return ((self._jd - other._jd) * SECONDS_PER_DAY
                    + (self._compensated_seconds()
                       - other._compensated_seconds()))
        return self.__iadd__(-jnp.asarray(other, dtype=get_dtype()))

    def shifted_by(self, delta: float) -> Epoch:
        """Return a new Epoch shifted by *delta* seconds (alias of ``+``)."""
        return self.__iadd__(delta)

    # Comparison operators

    def __eq__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return (self._jd == other._jd) & (
            jnp.abs(self._compensated_seconds()
                    - other._compensated_seconds()) < get_epoch_eq_tolerance()
        )

    def __ne__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return ~self.__eq__(other)

    def __lt__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return jnp.where(
            self._jd != other._jd,
            self._jd < other._jd,
            self._compensated_seconds() < other._compensated_seconds(),
        )

    def __le__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return self.__lt__(other) | self.__eq__(other)

    def __gt__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return jnp.where(
            self._jd != other._jd,
            self._jd > other._jd,
            self._compensated_seconds() > other._compensated_seconds(),
        )

    def __ge__(self, other):
        if not isinstance(other, Epoch):
            return NotImplemented
        return self.__gt__(other) | self.__eq__(other)

    # Time properties

    def tai_seconds(self) -> jax.Array:
        """Return seconds elapsed since 2000-01-01T12:00:00 TAI.

        This is the continuous count that time scales add their offsets to.

        Returns:
            jax.Array: Location on the continuous TAI axis.
        """
        dtype = get_dtype()
        return (dtype(self._jd - jnp.int32(JD2000)) * dtype(SECONDS_PER_DAY)
                + self._compensated_seconds())

    def _scale_day_and_seconds(self, time_scale):
        """Return (Julian Day number, seconds in day) on the given scale's label axis."""
        scale = get_time_scale(time_scale)
        offset = scale.offset_from_tai(float(self.tai_seconds()))
        seconds = float(self._compensated_seconds()) + offset
        day_offset = math.floor(seconds / SECONDS_PER_DAY)
        return int(self._jd) + day_offset, seconds - day_offset * SECONDS_PER_DAY

    def caldate(self, time_scale: str | TimeScale = "UTC"
                ) -> tuple[jax.Array, jax.Array, jax.Array, int, int, float]:
        """Return the calendar date components in the given scale.

        Not traceable under ``jax.jit``.

        Args:
            time_scale: Scale of the returned components. Default: ``"UTC"``.

        Returns:
            tuple: (year, month, day, hour, minute, second) where second
                includes fractional part.
        """
        jd_int, seconds = self._scale_day_and_seconds(time_scale)

        year, month, day, _, _, _ = jd_to_caldate(jd_int + seconds / SECONDS_PER_DAY)

        # JD day starts at noon, shift by 43200s to get civil time of day
        civil_time = (seconds + 43200.0) % SECONDS_PER_DAY

        hour = int(civil_time // 3600)
        civil_time -= hour * 3600
        minute = int(civil_time // 60)
        second = civil_time - minute * 60

        return year, month, day, hour, minute, second

    def jd(self, time_scale: str | TimeScale = "UTC") -> float:
        """Return the Julian Date in the given scale.

        A single float loses sub-millisecond precision; use epoch
        subtraction for precise time differences.

        Args:
            time_scale: Scale of the returned date. Default: ``"UTC"``.

        Returns:
            float: Julian Date.
        """
        jd_int, seconds = self._scale_day_and_seconds(time_scale)
        return jd_int + seconds / SECONDS_PER_DAY

    def mjd(self, time_scale: str | TimeScale = "UTC") -> float:
        """Return the Modified Julian Date in the given scale."""
        return float(jd_to_mjd(self.jd(time_scale)))

    def isoformat(self, time_scale: str | TimeScale = "UTC") -> str:
        """Return an ISO 8601 string in the given scale."""
        year, month, day, hour, minute, second = self.caldate(time_scale)
        return (f'{int(year):04d}-{int(month):02d}-{int(day):02d}T'
                f'{hour:02d}:{minute:02d}:{second:06.3f}Z')

    # String representations

    def __str__(self):
        return self.isoformat("UTC")

    def __repr__(self):
        return (f'Epoch(_jd={int(self._jd)}, _seconds={float(self._seconds)}, '
                f'_kahan_c={float(self._kahan_c)})')

    def __hash__(self):
        return hash((int(self._jd), round(float(self._seconds), 3)))


# Register Epoch as a JAX pytree so it can be used with jit, vmap, scan, etc.
jax.tree_util.register_pytree_node(
    Epoch,
    lambda e: ((e._jd, e._seconds, e._kahan_c), None),
    lambda _, children: Epoch._from_internal(*children),
)

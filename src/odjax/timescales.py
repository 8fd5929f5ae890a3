"""Time scales on top of the continuous TAI axis.

Every :class:`~odjax.epoch.Epoch` lives on a single continuous axis:
seconds elapsed since 2000-01-01T12:00:00 TAI.  A time scale is described
only by the offset to *add* to a TAI location to obtain a location in the
scale (``offset_from_tai``) and the offset to add to a location in the
scale to get back to TAI (``offset_to_tai``).

TAI, TT and GPS time differ from TAI by a constant.  UTC follows TAI with
steps inserted by the IERS, the leap seconds.  A leap is modelled as a
clock reset at the *end* of the inserted second rather than as a
``23:59:60`` label: UTC flows continuously from 23:59:59 to 00:00:00 and
the clock is then stepped back to 23:59:59, so the same UTC second is
lived twice.  A UTC location inside that repeated second is therefore
ambiguous and always maps back to TAI with the pre-leap offset.

The UTC scale is a lazily-built, read-only process-wide instance guarded by
a lock; :class:`UTCScale` can also be built directly from a leap table and
handed to :class:`~odjax.epoch.Epoch` explicitly.

Typical usage::

    from odjax.timescales import get_utc_scale
    utc = get_utc_scale()
    utc.offset_from_tai(epoch.tai_seconds())   # -37.0 after 2017
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import NamedTuple

from .constants import GPS_TAI, MJD2000, SECONDS_PER_DAY, TT_TAI
from .errors import LeapSecondDataError

logger = logging.getLogger(__name__)

# TAI - UTC history: (MJD of introduction, TAI-UTC in seconds).
# Source: IERS Bulletin C / USNO leap second table (1972-01-01 through 2017-01-01).
_TAI_UTC_HISTORY: tuple[tuple[float, float], ...] = (
    (41317.0, 10.0),  # 1972-01-01
    (41499.0, 11.0),  # 1972-07-01
    (41683.0, 12.0),  # 1973-01-01
    (42048.0, 13.0),  # 1974-01-01
    (42413.0, 14.0),  # 1975-01-01
    (42778.0, 15.0),  # 1976-01-01
    (43144.0, 16.0),  # 1977-01-01
    (43509.0, 17.0),  # 1978-01-01
    (43874.0, 18.0),  # 1979-01-01
    (44239.0, 19.0),  # 1980-01-01
    (44786.0, 20.0),  # 1981-07-01
    (45151.0, 21.0),  # 1982-01-01
    (45516.0, 22.0),  # 1983-07-01
    (46247.0, 23.0),  # 1985-07-01
    (47161.0, 24.0),  # 1988-01-01
    (47892.0, 25.0),  # 1990-01-01
    (48257.0, 26.0),  # 1991-01-01
    (48804.0, 27.0),  # 1992-07-01
    (49169.0, 28.0),  # 1993-07-01
    (49534.0, 29.0),  # 1994-07-01
    (50083.0, 30.0),  # 1996-01-01
    (50630.0, 31.0),  # 1997-07-01
    (51179.0, 32.0),  # 1999-01-01
    (53736.0, 33.0),  # 2006-01-01
    (54832.0, 34.0),  # 2009-01-01
    (56109.0, 35.0),  # 2012-07-01
    (57204.0, 36.0),  # 2015-07-01
    (57754.0, 37.0),  # 2017-01-01
)


class Leap(NamedTuple):
    """One entry of a leap-second table.

    Attributes:
        utc_time: UTC location at which the new offset applies, in seconds
            since 2000-01-01T12:00:00 on the UTC label axis.
        step: Change of the offset at this leap, ``offset_after`` minus the
            previous entry's ``offset_after`` (``-1.0`` for a positive leap
            second).
        offset_after: ``UTC - TAI`` after the leap, in seconds.
    """

    utc_time: float
    step: float
    offset_after: float


def mjd_to_utc_seconds(mjd: float) -> float:
    """Convert a UTC Modified Julian Date to seconds since 2000-01-01T12:00:00 UTC."""
    return (mjd - MJD2000) * SECONDS_PER_DAY


def leap_table_from_offsets(offsets: Iterable[tuple[float, float]]) -> tuple[Leap, ...]:
    """Build a leap table from ``(mjd_utc, tai_minus_utc)`` pairs.

    The pairs may come in any order.  The returned table is sorted by
    decreasing ``utc_time``, the most recent leap first, which is the order
    in which :class:`UTCScale` scans it.

    Args:
        offsets: Iterable of ``(mjd, tai_minus_utc)`` pairs.  Each pair gives
            the UTC MJD at which TAI-UTC becomes ``tai_minus_utc`` seconds.

    Returns:
        tuple[Leap, ...]: Leap table, most recent entry first.
    """
    ascending = sorted(offsets, key=lambda entry: entry[0])
    leaps = []
    previous = 0.0
    for mjd, tai_minus_utc in ascending:
        offset_after = -float(tai_minus_utc)
        leaps.append(Leap(mjd_to_utc_seconds(float(mjd)), offset_after - previous, offset_after))
        previous = offset_after
    return tuple(reversed(leaps))


def default_leap_table() -> tuple[Leap, ...]:
    """Return the bundled leap table (1972-01-01 through 2017-01-01)."""
    return leap_table_from_offsets(_TAI_UTC_HISTORY)


class TimeScale:
    """Base class of time scales.

    Subclasses implement the two offset functions; locations are seconds on
    the continuous axis starting at 2000-01-01T12:00:00 of the respective
    scale.
    """

    name: str = ""

    def offset_from_tai(self, tai_time: float) -> float:
        """Return the offset to add to a TAI location to get a location in this scale."""
        raise NotImplementedError

    def offset_to_tai(self, scale_time: float) -> float:
        """Return the offset to add to a location in this scale to get a TAI location."""
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"

    def __str__(self):
        return self.name


class _ConstantOffsetScale(TimeScale):
    _offset: float = 0.0

    def offset_from_tai(self, tai_time: float) -> float:
        return self._offset

    def offset_to_tai(self, scale_time: float) -> float:
        return -self._offset


class TAIScale(_ConstantOffsetScale):
    """International Atomic Time, the reference of the internal axis."""

    name = "TAI"
    _offset = 0.0


class TTScale(_ConstantOffsetScale):
    """Terrestrial Time, ``TT = TAI + 32.184 s`` by convention."""

    name = "TT"
    _offset = TT_TAI


class GPSScale(_ConstantOffsetScale):
    """GPS time, ``GPS = TAI - 19 s``."""

    name = "GPS"
    _offset = GPS_TAI


class UTCScale(TimeScale):
    """Coordinated Universal Time.

    UTC is related to TAI through the steps of a leap table.  See the module
    docstring for the clock-reset convention used at each leap.

    Args:
        leaps: Leap table.  Entries are re-sorted by decreasing
            ``utc_time`` so that the most recent leap, usually the only one
            really used, is checked first.

    Raises:
        LeapSecondDataError: If *leaps* is empty.
    """

    name = "UTC"

    def __init__(self, leaps: Sequence[Leap]) -> None:
        leaps = tuple(Leap(*leap) for leap in leaps)
        if not leaps:
            raise LeapSecondDataError("No leap-second data available to build the UTC scale")
        self._leaps = tuple(sorted(leaps, key=lambda leap: leap.utc_time, reverse=True))

    @property
    def leaps(self) -> tuple[Leap, ...]:
        """Leap table, most recent entry first."""
        return self._leaps

    def offset_from_tai(self, tai_time: float) -> float:
        """Return ``UTC - TAI`` at a TAI location.

        Args:
            tai_time: Seconds since 2000-01-01T12:00:00 TAI.

        Returns:
            float: Offset to add to *tai_time*, 0.0 before the first leap.
        """
        for leap in self._leaps:
            if tai_time + (leap.offset_after - leap.step) >= leap.utc_time:
                return leap.offset_after
        return 0.0

    def offset_to_tai(self, scale_time: float) -> float:
        """Return ``TAI - UTC`` at a UTC location.

        Inside the repeated second following a leap the pre-leap offset is
        returned.

        Args:
            scale_time: Seconds since 2000-01-01T12:00:00 UTC.

        Returns:
            float: Offset to add to *scale_time*, 0.0 before the first leap.
        """
        for leap in self._leaps:
            if scale_time >= leap.utc_time:
                return -leap.offset_after
        return 0.0

    def __repr__(self):
        return f"UTCScale(<{len(self._leaps)} leaps>)"


_TAI = TAIScale()
_TT = TTScale()
_GPS = GPSScale()

_utc_lock = threading.Lock()
_utc_scale: UTCScale | None = None
_leap_loader: Callable[[], Sequence[Leap]] = default_leap_table


def set_leap_second_loader(loader: Callable[[], Sequence[Leap]]) -> None:
    """Set the callable providing the leap table of the process-wide UTC scale.

    The loader is called once, on the first :func:`get_utc_scale` call that
    follows.  A UTC scale already built with a previous loader is discarded.

    Args:
        loader: Zero-argument callable returning a leap table.
    """
    global _utc_scale, _leap_loader
    with _utc_lock:
        _leap_loader = loader
        _utc_scale = None


def get_utc_scale() -> UTCScale:
    """Return the process-wide UTC scale, building it on first use.

    Construction is serialized: exactly one caller builds the scale and all
    others observe the completed instance.

    Returns:
        UTCScale: The shared UTC scale.

    Raises:
        LeapSecondDataError: If the leap-second loader provides no data.
            Nothing is cached in that case.
    """
    global _utc_scale
    scale = _utc_scale
    if scale is not None:
        return scale
    with _utc_lock:
        if _utc_scale is None:
            scale = UTCScale(_leap_loader())
            logger.debug("Built UTC time scale with %d leap entries", len(scale.leaps))
            _utc_scale = scale
        return _utc_scale


def get_time_scale(name: str | TimeScale) -> TimeScale:
    """Resolve a time scale by name.

    Args:
        name: One of ``"TAI"``, ``"TT"``, ``"GPS"``, ``"UTC"`` (case
            insensitive), or a :class:`TimeScale` instance which is returned
            unchanged.

    Returns:
        TimeScale: The matching scale.

    Raises:
        ValueError: If *name* is not a known scale.
    """
    if isinstance(name, TimeScale):
        return name
    key = str(name).upper()
    if key == "UTC":
        return get_utc_scale()
    scales = {"TAI": _TAI, "TT": _TT, "GPS": _GPS}
    if key not in scales:
        raise ValueError(
            f"Unknown time scale {name!r}. Must be one of: TAI, TT, GPS, UTC"
        )
    return scales[key]

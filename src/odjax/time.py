"""Calendar and Julian date conversions.

Pure arithmetic helpers used by :class:`~odjax.epoch.Epoch`. They know
nothing about time scales: a calendar date is converted to a day count on
whatever scale the caller has in mind. Leap seconds are handled by
:mod:`odjax.timescales`.

The Modified Julian Date is the working representation: calendar dates
are mapped to and from whole MJD day numbers with integer arithmetic on
the proleptic Gregorian calendar (400-year eras of 146097 days), and the
Julian Date functions are thin offsets on top.  All functions are
compatible with ``jax.jit`` and ``jax.vmap``.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from jax.typing import ArrayLike

from .config import get_dtype
from .constants import JD_MJD_OFFSET, SECONDS_PER_DAY

# Days in a 400-year Gregorian era
_ERA_DAYS = 146097

# MJD of 0000-03-01, the origin of the March-based era arithmetic
_MJD_OF_ERA_ORIGIN = -678881

_MS_PER_DAY = int(SECONDS_PER_DAY * 1000)


def caldate_to_mjd(
    year: ArrayLike,
    month: ArrayLike,
    day: ArrayLike,
    hour: ArrayLike = 0,
    minute: ArrayLike = 0,
    second: ArrayLike = 0.0,
) -> jax.Array:
    """Convert a calendar date to Modified Julian Date.

    Years are counted from March so that the leap day is the last day of
    the year, which makes the day-of-year a linear function of the month.

    Args:
        year (ArrayLike): Year of the calendar date.
        month (ArrayLike): Month of the calendar date.
        day (ArrayLike): Day of the calendar date.
        hour (ArrayLike): Hour of the calendar date. Default: ``0``
        minute (ArrayLike): Minute of the calendar date. Default: ``0``
        second (ArrayLike): Second of the calendar date. Default: ``0.0``

    Returns:
        Modified Julian Date.

    References:

        1. H. Hinnant, *chrono-Compatible Low-Level Date Algorithms*,
           ``days_from_civil``.
    """
    year = jnp.asarray(year).astype(jnp.int32)
    month = jnp.asarray(month).astype(jnp.int32)
    day = jnp.asarray(day).astype(jnp.int32)

    year = jnp.where(month <= 2, year - 1, year)
    era = year // 400
    year_of_era = year - era * 400
    march_month = jnp.where(month > 2, month - 3, month + 9)
    day_of_year = (153 * march_month + 2) // 5 + day - 1
    day_of_era = year_of_era * 365 + year_of_era // 4 - year_of_era // 100 + day_of_year
    day_number = era * _ERA_DAYS + day_of_era + _MJD_OF_ERA_ORIGIN

    dtype = get_dtype()
    frac_day = (dtype(hour) + (dtype(minute) + dtype(second) / 60.0) / 60.0) / 24.0
    return day_number.astype(dtype) + frac_day


def caldate_to_jd(
    year: ArrayLike,
    month: ArrayLike,
    day: ArrayLike,
    hour: ArrayLike = 0,
    minute: ArrayLike = 0,
    second: ArrayLike = 0.0,
) -> jax.Array:
    """Convert a calendar date to Julian Date.

    Args:
        year (ArrayLike): Year of the calendar date.
        month (ArrayLike): Month of the calendar date.
        day (ArrayLike): Day of the calendar date.
        hour (ArrayLike): Hour of the calendar date. Default: ``0``
        minute (ArrayLike): Minute of the calendar date. Default: ``0``
        second (ArrayLike): Second of the calendar date. Default: ``0.0``

    Returns:
        Julian Date.
    """
    return mjd_to_jd(caldate_to_mjd(year, month, day, hour, minute, second))


def jd_to_mjd(jd: ArrayLike) -> jax.Array:
    return jnp.asarray(jd, dtype=get_dtype()) - JD_MJD_OFFSET


def mjd_to_jd(mjd: ArrayLike) -> jax.Array:
    return jnp.asarray(mjd, dtype=get_dtype()) + JD_MJD_OFFSET


def mjd_to_caldate(
    mjd: ArrayLike,
) -> tuple[jax.Array, jax.Array, jax.Array, jax.Array, jax.Array, jax.Array]:
    """Convert Modified Julian Date to calendar date.

    The time of day is rounded to the millisecond; a rounding that reaches
    midnight rolls over to the next day.

    Args:
        mjd (ArrayLike): Modified Julian Date.

    Returns:
        tuple[jax.Array, ...]: (year, month, day, hour, minute, second) where
            year/month/day/hour/minute are int32 and second is a float.

    References:

        1. H. Hinnant, *chrono-Compatible Low-Level Date Algorithms*,
           ``civil_from_days``.
    """
    mjd = jnp.asarray(mjd, dtype=get_dtype())
    whole_days = jnp.floor(mjd)

    millis = jnp.round((mjd - whole_days) * _MS_PER_DAY).astype(jnp.int32)
    carry = millis // _MS_PER_DAY
    millis = millis - carry * _MS_PER_DAY
    day_number = whole_days.astype(jnp.int32) + carry

    shifted = day_number - _MJD_OF_ERA_ORIGIN
    era = shifted // _ERA_DAYS
    day_of_era = shifted - era * _ERA_DAYS
    year_of_era = (day_of_era - day_of_era // 1460 + day_of_era // 36524
                   - day_of_era // (_ERA_DAYS - 1)) // 365
    day_of_year = day_of_era - (365 * year_of_era + year_of_era // 4 - year_of_era // 100)
    march_month = (5 * day_of_year + 2) // 153

    day = day_of_year - (153 * march_month + 2) // 5 + 1
    month = jnp.where(march_month < 10, march_month + 3, march_month - 9)
    year = year_of_era + era * 400 + (month <= 2).astype(jnp.int32)

    hour = millis // 3600000
    millis = millis - hour * 3600000
    minute = millis // 60000
    millis = millis - minute * 60000
    second = get_dtype()(millis) / 1000.0

    return year, month, day, hour, minute, second


def jd_to_caldate(
    jd: ArrayLike,
) -> tuple[jax.Array, jax.Array, jax.Array, jax.Array, jax.Array, jax.Array]:
    """Convert Julian Date to calendar date.

    Args:
        jd (ArrayLike): Julian Date.

    Returns:
        tuple[jax.Array, ...]: (year, month, day, hour, minute, second), as
            returned by :func:`mjd_to_caldate`.
    """
    return mjd_to_caldate(jd_to_mjd(jd))

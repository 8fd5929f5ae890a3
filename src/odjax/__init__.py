"""
odjax is a JAX library for orbit determination building blocks: leap-second
aware time scales, bounded dense-output ephemerides and forward-mode
differentiable spacecraft states.
"""

from .constants import (
    JD_MJD_OFFSET,
    MJD2000,
    JD2000,
    SECONDS_PER_DAY,
    TT_TAI,
    GPS_TAI,
    R_EARTH,
    GM_EARTH,
)

from .config import set_dtype, get_dtype
from .errors import DateOutOfRangeError, LeapSecondDataError, PropagationError

from .timescales import (
    Leap,
    TimeScale,
    TAIScale,
    TTScale,
    GPSScale,
    UTCScale,
    default_leap_table,
    leap_table_from_offsets,
    get_time_scale,
    get_utc_scale,
    set_leap_second_loader,
)
from .epoch import Epoch

from .differentiation import DifferentiableValue

from .coordinates import (
    state_eqn_to_eci,
    state_eci_to_eqn,
    state_koe_to_eqn,
    state_eqn_to_koe,
)

from .attitudes import Attitude, InertialAttitude, LofAttitude

from .propagation import (
    Orbit,
    SpacecraftState,
    IntegratedEphemeris,
    NumericalPropagator,
    create_keplerian_dynamics,
)

from .estimation import (
    DifferentiableStateConverter,
    ParameterDriver,
    differentiate_state,
)

__all__ = [
    # Constants
    "JD_MJD_OFFSET",
    "MJD2000",
    "JD2000",
    "SECONDS_PER_DAY",
    "TT_TAI",
    "GPS_TAI",
    "R_EARTH",
    "GM_EARTH",
    # Config
    "set_dtype",
    "get_dtype",
    # Errors
    "DateOutOfRangeError",
    "LeapSecondDataError",
    "PropagationError",
    # Time
    "Leap",
    "TimeScale",
    "TAIScale",
    "TTScale",
    "GPSScale",
    "UTCScale",
    "default_leap_table",
    "leap_table_from_offsets",
    "get_time_scale",
    "get_utc_scale",
    "set_leap_second_loader",
    "Epoch",
    # Differentiation
    "DifferentiableValue",
    # Coordinates
    "state_eqn_to_eci",
    "state_eci_to_eqn",
    "state_koe_to_eqn",
    "state_eqn_to_koe",
    # Attitudes
    "Attitude",
    "InertialAttitude",
    "LofAttitude",
    # Propagation
    "Orbit",
    "SpacecraftState",
    "IntegratedEphemeris",
    "NumericalPropagator",
    "create_keplerian_dynamics",
    # Estimation
    "DifferentiableStateConverter",
    "ParameterDriver",
    "differentiate_state",
]

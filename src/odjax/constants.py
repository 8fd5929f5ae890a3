"""
The `constants` module defines the time and physical constants used by odjax.
"""

# Time Constants

"""
Offset between Julian Date and Modified Julian Date. Units: *days*
"""
JD_MJD_OFFSET = 2400000.5

"""
Modified Julian Date of the J2000.0 epoch (2000-01-01 12:00:00). Units: *days*
"""
MJD2000 = 51544.5

"""
Julian Day number of the J2000.0 epoch (2000-01-01 12:00:00). Units: *days*
"""
JD2000 = 2451545

"""
Number of seconds in a day. Units: *s*
"""
SECONDS_PER_DAY = 86400.0

"""
Offset between Terrestrial Time and International Atomic Time, TT - TAI.
Constant by definition. Units: *s*

References:

1. IAU 1991 Recommendation IV
"""
TT_TAI = 32.184

"""
Offset between GPS time and International Atomic Time, GPS - TAI. Units: *s*
"""
GPS_TAI = -19.0

# Earth Constants

"""
Earth's equatorial radius. [m]

References:

1. GGM05s Gravity Model
"""
R_EARTH = 6.378136300e6  # [m] GGM05s Value

"""
Earth's gravitational constant. [m^3/s^2]

References:

1. GGM05s Gravity Model
"""
GM_EARTH = 3.986004415e14  # [m^3/s^2] GGM05s Value

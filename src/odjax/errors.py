"""Exceptions raised by odjax.

Invalid arguments are reported with the built-in ``ValueError``; the
classes below cover the failure modes that are specific to time scales
and propagation.
"""


class LeapSecondDataError(RuntimeError):
    """Raised when a UTC time scale cannot be built for lack of leap-second data."""


class PropagationError(RuntimeError):
    """Raised when a spacecraft state cannot be produced.

    Covers ephemerides queried before they hold data, integration runs that
    exceed their step budget, and attitude-law failures (chained as the
    ``__cause__``).
    """


class DateOutOfRangeError(PropagationError):
    """Raised when a bounded ephemeris is queried outside ``[min_date, max_date]``."""

    def __init__(self, epoch, min_date, max_date):
        self.epoch = epoch
        self.min_date = min_date
        self.max_date = max_date
        super().__init__(
            f"Epoch {epoch} is outside the ephemeris range [{min_date}, {max_date}]"
        )

"""
Domain errors for booking and reminder dispatch.

HTTP mapping lives in main.py; services raise these and never build responses.
"""

from typing import Optional


class BookingError(Exception):
    """Base class for scheduling domain errors"""

    pass


class InvalidInputError(BookingError):
    """Malformed date, time or duration input"""

    def __init__(self, message: str, fields: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.fields = fields or {}


class ConflictError(BookingError):
    """Requested interval overlaps an active booking"""

    def __init__(
        self,
        message: str = "This time is no longer available, please pick another time",
        conflicting_start: Optional[str] = None,
        conflicting_end: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.conflicting_start = conflicting_start
        self.conflicting_end = conflicting_end


class NotifierError(BookingError):
    """The external send channel failed to deliver"""

    pass


class UnauthorizedError(BookingError):
    """Cron endpoint called without the configured shared secret"""

    pass

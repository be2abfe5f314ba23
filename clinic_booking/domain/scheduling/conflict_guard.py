"""
Booking conflict guard - no-overlap check run inside the booking transaction
"""

import logging
from datetime import date
from typing import Iterable

from sqlalchemy.orm import Session

from ...errors import ConflictError, InvalidInputError
from .availability_service import busy_intervals
from .repository import BookingRepository
from .time_calculator import intervals_overlap, parse_date, to_minutes

logger = logging.getLogger(__name__)


def find_conflict(start: str, end: str, existing_bookings: Iterable):
    """First active booking whose interval overlaps [start, end), or None"""
    start_minutes = to_minutes(start)
    end_minutes = to_minutes(end)
    if end_minutes <= start_minutes:
        raise InvalidInputError("End time must be after start time", {"endTime": end})

    for booking in existing_bookings:
        for b_start, b_end in busy_intervals([booking]):
            if intervals_overlap(start_minutes, end_minutes, b_start, b_end):
                return booking
    return None


class BookingConflictGuard:
    """
    Re-validates a candidate interval against the bookings of its day.

    Call it in the same transaction as the insert, after locking the day, so
    that no other booking can land between the check and the write.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def assert_no_conflict(self, day: date, start: str, end: str) -> None:
        day = parse_date(day)
        self.repo.lock_date(self.db, day)
        bookings = self.repo.get_active_bookings_for_date(self.db, day, for_update=True)

        conflict = find_conflict(start, end, bookings)
        if conflict is not None:
            logger.warning(
                f"⚠️ Booking conflict on {day}: requested {start}-{end} overlaps "
                f"booking {conflict.id} ({conflict.start_time}-{conflict.end_time})"
            )
            raise ConflictError(
                conflicting_start=conflict.start_time,
                conflicting_end=conflict.end_time,
            )

"""
Availability service - free slot computation against working hours and bookings
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...errors import InvalidInputError
from ...models import ACTIVE_BOOKING_STATUSES
from ..settings.schemas import WorkingHoursPolicy
from ..settings.service import SettingsService
from .repository import BookingRepository
from .time_calculator import format_minutes, intervals_overlap, js_day_of_week, parse_date, to_minutes

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60


@dataclass(frozen=True)
class Slot:
    start: str  # HH:MM
    end: str  # HH:MM

    @property
    def display_time(self) -> str:
        return f"{self.start} - {self.end}"

    def to_dict(self) -> dict:
        return {"time": self.start, "displayTime": self.display_time, "available": True}


@dataclass
class AvailabilityResult:
    date: date
    duration_minutes: int
    slots: list[Slot] = field(default_factory=list)
    message: Optional[str] = None


def busy_intervals(existing_bookings: Iterable) -> list[tuple[int, int]]:
    """Minute intervals of bookings that hold their slot (PENDING / CONFIRMED)"""
    intervals = []
    for booking in existing_bookings:
        status = getattr(booking, "status", None)
        if status is not None and status not in ACTIVE_BOOKING_STATUSES:
            continue
        intervals.append((to_minutes(booking.start_time), to_minutes(booking.end_time)))
    return intervals


def available_slots(
    day,
    duration_minutes: int,
    working_hours: WorkingHoursPolicy,
    existing_bookings: Iterable = (),
) -> AvailabilityResult:
    """
    Bookable start times for a day, in ascending order.

    Candidates sit on a grid of ``working_hours.slot_step_minutes`` from the
    opening hour; each must end by closing time and must not overlap an
    active booking.
    """
    day = parse_date(day)
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise InvalidInputError(
            "Duration must be a positive number of minutes", {"durationMinutes": duration_minutes}
        )

    result = AvailabilityResult(date=day, duration_minutes=duration_minutes)

    hours = working_hours.hours_for(js_day_of_week(day))
    if hours is None:
        result.message = working_hours.closed_message
        return result

    open_minutes = hours.start_hour * 60
    close_minutes = hours.end_hour * 60
    busy = busy_intervals(existing_bookings)

    for candidate_start in range(open_minutes, close_minutes, working_hours.slot_step_minutes):
        candidate_end = candidate_start + duration_minutes
        if candidate_end > close_minutes:
            continue
        if any(intervals_overlap(candidate_start, candidate_end, b_start, b_end) for b_start, b_end in busy):
            continue
        result.slots.append(Slot(start=format_minutes(candidate_start), end=format_minutes(candidate_end)))

    return result


def check_within_working_hours(day, start_minutes: int, end_minutes: int, working_hours: WorkingHoursPolicy) -> None:
    """
    Reject a requested interval that is not one of the day's bookable slots.

    The interval must fall inside opening hours and start on the slot grid
    that available_slots offers.
    """
    day = parse_date(day)
    hours = working_hours.hours_for(js_day_of_week(day))
    if hours is None:
        raise InvalidInputError(working_hours.closed_message, {"date": day.isoformat()})

    open_minutes = hours.start_hour * 60
    close_minutes = hours.end_hour * 60
    start_time = format_minutes(start_minutes)
    if start_minutes < open_minutes or end_minutes > close_minutes:
        raise InvalidInputError(
            f"Requested time is outside working hours ({format_minutes(open_minutes)} - {format_minutes(close_minutes)})",
            {"startTime": start_time},
        )
    if (start_minutes - open_minutes) % working_hours.slot_step_minutes:
        raise InvalidInputError("Requested time is not an available slot", {"startTime": start_time})


class AvailabilityService:
    """Loads bookings, service and settings, then delegates to available_slots"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.settings = SettingsService(db)

    def get_availability(self, day: str, service_id: Optional[int] = None) -> AvailabilityResult:
        parsed_day = parse_date(day)

        duration = DEFAULT_DURATION_MINUTES
        if service_id is not None:
            service = self.repo.get_service(self.db, service_id)
            if service:
                duration = service.duration_minutes
            else:
                logger.warning(f"⚠️ Unknown service {service_id}, using {DEFAULT_DURATION_MINUTES} minute slots")

        bookings = self.repo.get_active_bookings_for_date(self.db, parsed_day)
        result = available_slots(parsed_day, duration, self.settings.get_working_hours(), bookings)
        logger.debug(f"📅 {len(result.slots)} free slots on {parsed_day} for {duration} min")
        return result

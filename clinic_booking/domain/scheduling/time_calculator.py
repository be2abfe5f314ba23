"""
Time parsing and schedule arithmetic.

Everything here is pure: no database access, no clock reads. Callers pass
"now" and the relevant policy explicitly.
"""

from datetime import date, datetime, time, timedelta, timezone

from ...errors import InvalidInputError
from ...shared.validators import TIME_PATTERN, validate_iso_date
from ..settings.schemas import UTC_OFFSET_PATTERN, RecurrencePolicy

MINUTES_PER_DAY = 24 * 60
END_OF_DAY = "24:00"


def to_minutes(value: str) -> int:
    """
    Convert "HH:MM" into minutes since midnight.

    "24:00" is read as the end of the day (1440) so that an interval can
    close at midnight.
    """
    if isinstance(value, str) and value.strip() == END_OF_DAY:
        return MINUTES_PER_DAY
    if not isinstance(value, str) or not TIME_PATTERN.match(value.strip()):
        raise InvalidInputError(f"Invalid time '{value}'. Expected HH:MM", {"time": value})
    hour, minute = value.strip().split(":")
    return int(hour) * 60 + int(minute)


def format_minutes(total_minutes: int) -> str:
    """Convert minutes since midnight into "HH:MM" (24:00 allowed for end-of-day)"""
    if total_minutes < 0 or total_minutes > MINUTES_PER_DAY:
        raise InvalidInputError(f"Time out of range: {total_minutes} minutes")
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def parse_date(value) -> date:
    """Accept a date or a YYYY-MM-DD string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return validate_iso_date(value)
    except ValueError as e:
        raise InvalidInputError(str(e), {"date": value}) from None


def js_day_of_week(day: date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday"""
    return (day.weekday() + 1) % 7


def parse_utc_offset(offset: str) -> timezone:
    """Turn "+03:00" into a fixed-offset tzinfo"""
    if not isinstance(offset, str) or not UTC_OFFSET_PATTERN.match(offset):
        raise InvalidInputError(f"Invalid UTC offset '{offset}'. Expected +HH:MM")
    sign = 1 if offset[0] == "+" else -1
    hours, minutes = offset[1:].split(":")
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))


def combine_local(day: date, hhmm: str, offset: str) -> datetime:
    """
    Absolute instant for a wall-clock time on a calendar day.

    The wall clock is always read in the configured fixed offset, never the
    server's zone, so results do not depend on where the process runs.
    """
    tz = parse_utc_offset(offset)
    minutes = to_minutes(hhmm)
    return datetime.combine(day, time(0, 0), tzinfo=tz) + timedelta(minutes=minutes)


def to_utc_naive(instant: datetime) -> datetime:
    """Storage form for instants: naive UTC"""
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc).replace(tzinfo=None)


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open overlap test for [a_start, a_end) and [b_start, b_end)"""
    return a_start < b_end and a_end > b_start


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def latest_scheduled_instant(policy: RecurrencePolicy, now: datetime) -> datetime:
    """
    Most recent scheduled instant at or before ``now``.

    Wall-clock fields are interpreted in ``now``'s timezone. ``manual``
    policies have no schedule; callers must branch on it first.
    """
    if policy.frequency == "manual":
        raise ValueError("Manual schedules have no scheduled instant")

    hour, minute = divmod(to_minutes(policy.time), 60)
    base = now.replace(hour=hour, minute=minute, second=0, microsecond=0)

    if policy.frequency == "daily":
        if base > now:
            base -= timedelta(days=1)
        return base

    if policy.frequency == "weekly":
        delta = js_day_of_week(base.date()) - policy.day_of_week
        base -= timedelta(days=delta)
        if base > now:
            base -= timedelta(days=7)
        return base

    target_day = min(max(policy.day_of_month, 1), 28)
    base = base.replace(day=target_day)
    if base > now:
        year, month = _previous_month(base.year, base.month)
        base = base.replace(year=year, month=month, day=target_day)
    return base


def _assume_utc(value: datetime) -> datetime:
    """Naive instants are stored and passed around as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_run_due(policy: RecurrencePolicy, now: datetime) -> bool:
    """A run is due when it never ran or last ran before the latest scheduled instant"""
    if policy.frequency == "manual":
        return False
    if policy.last_run_at is None:
        return True

    now = _assume_utc(now)
    return _assume_utc(policy.last_run_at) < latest_scheduled_instant(policy, now)

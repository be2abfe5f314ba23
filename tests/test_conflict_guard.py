"""Tests for the no-overlap guard."""

import random
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from clinic_booking.domain.scheduling.conflict_guard import BookingConflictGuard, find_conflict
from clinic_booking.domain.scheduling.repository import BookingRepository
from clinic_booking.domain.scheduling.schemas import BookingCreate
from clinic_booking.domain.scheduling.service import BookingService
from clinic_booking.domain.scheduling.time_calculator import to_minutes
from clinic_booking.domain.settings.schemas import DayHours, WorkingHoursPolicy
from clinic_booking.domain.settings.service import SettingsService
from clinic_booking.errors import ConflictError, InvalidInputError
from conftest import make_booking, make_service

MONDAY = date(2025, 3, 17)


def booking(start, end, status="CONFIRMED"):
    return SimpleNamespace(id=1, start_time=start, end_time=end, status=status)


class TestFindConflict:
    def test_no_bookings(self):
        assert find_conflict("10:00", "11:00", []) is None

    def test_overlap_returns_booking(self):
        existing = booking("10:30", "11:30")
        assert find_conflict("10:00", "11:00", [existing]) is existing

    def test_adjacent_is_not_a_conflict(self):
        assert find_conflict("11:00", "12:00", [booking("10:00", "11:00")]) is None
        assert find_conflict("09:00", "10:00", [booking("10:00", "11:00")]) is None

    def test_cancelled_is_ignored(self):
        assert find_conflict("10:00", "11:00", [booking("10:00", "11:00", "CANCELLED")]) is None

    def test_end_before_start(self):
        with pytest.raises(InvalidInputError):
            find_conflict("11:00", "10:00", [])
        with pytest.raises(InvalidInputError):
            find_conflict("10:00", "10:00", [])


class TestBookingConflictGuard:
    def test_raises_with_conflicting_interval(self, db):
        make_booking(db, MONDAY, "10:00", "11:00")
        with pytest.raises(ConflictError) as exc:
            BookingConflictGuard(db).assert_no_conflict(MONDAY, "10:30", "11:30")
        assert exc.value.conflicting_start == "10:00"
        assert exc.value.conflicting_end == "11:00"
        assert "no longer available" in exc.value.message

    def test_other_days_do_not_conflict(self, db):
        make_booking(db, date(2025, 3, 18), "10:00", "11:00")
        BookingConflictGuard(db).assert_no_conflict(MONDAY, "10:00", "11:00")

    def test_cancelled_booking_frees_the_slot(self, db):
        make_booking(db, MONDAY, "10:00", "11:00", status="CANCELLED")
        BookingConflictGuard(db).assert_no_conflict(MONDAY, "10:00", "11:00")

    def test_accepted_bookings_never_overlap(self):
        """Random request streams: whatever the guard accepts is pairwise disjoint."""
        rng = random.Random(42)
        for _ in range(100):
            accepted = []
            for _ in range(30):
                start = rng.randrange(8 * 60, 19 * 60, 15)
                end = start + rng.choice([15, 30, 45, 60, 90])
                start_s = f"{start // 60:02d}:{start % 60:02d}"
                end_s = f"{end // 60:02d}:{end % 60:02d}"
                if find_conflict(start_s, end_s, accepted) is None:
                    accepted.append(booking(start_s, end_s, rng.choice(["PENDING", "CONFIRMED"])))

            intervals = sorted((to_minutes(b.start_time), to_minutes(b.end_time)) for b in accepted)
            for (_, prev_end), (next_start, _) in zip(intervals, intervals[1:]):
                assert prev_end <= next_start

    def test_persisted_bookings_never_overlap(self, db):
        """Random requests through the booking service leave disjoint active bookings."""
        day = date(2099, 3, 16)  # Monday
        SettingsService(db).set_working_hours(
            WorkingHoursPolicy(days={1: DayHours(start_hour=8, end_hour=20)}, slot_step_minutes=15)
        )
        services = [make_service(db, title=f"Session {m}", duration_minutes=m) for m in (15, 30, 45, 60, 90)]
        booking_service = BookingService(db)
        now = datetime(2099, 1, 1, tzinfo=timezone.utc)
        rng = random.Random(7)
        accepted = rejected = 0

        for attempt in range(60):
            start = rng.randrange(8 * 60, 20 * 60, 15)
            data = BookingCreate(
                serviceId=rng.choice(services).id,
                date=day.isoformat(),
                startTime=f"{start // 60:02d}:{start % 60:02d}",
                name="Ayse Demir",
                email=f"parent{attempt % 5}@example.com",
                phone="05321234567",
            )
            try:
                booking_service.create_booking(data, now=now)
                accepted += 1
            except (ConflictError, InvalidInputError):
                rejected += 1

            active = BookingRepository.get_active_bookings_for_date(db, day)
            intervals = sorted((to_minutes(b.start_time), to_minutes(b.end_time)) for b in active)
            for (_, prev_end), (next_start, _) in zip(intervals, intervals[1:]):
                assert prev_end <= next_start

        assert accepted > 0
        assert rejected > 0

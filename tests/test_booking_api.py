"""HTTP tests for availability and booking creation."""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from clinic_booking.domain.reminders.repository import ReminderRepository
from clinic_booking.domain.scheduling.schemas import BookingCreate
from clinic_booking.domain.scheduling.service import BookingService
from clinic_booking.domain.settings.schemas import DayHours, WorkingHoursPolicy
from clinic_booking.domain.settings.service import SettingsService
from clinic_booking.errors import ConflictError
from clinic_booking.models import Booking, Child, Client, ReminderKind
from conftest import make_booking, make_client, make_service

FUTURE_DAY = "2099-03-16"


def booking_payload(service_id, **overrides):
    payload = {
        "serviceId": service_id,
        "date": FUTURE_DAY,
        "startTime": "10:00",
        "name": "Ayse Demir",
        "email": "Parent@Example.com",
        "phone": "+90 532 123 45 67",
    }
    payload.update(overrides)
    return payload


class TestAvailabilityEndpoint:
    def test_returns_slots(self, client, db):
        service = make_service(db)
        response = client.get("/availability", params={"date": "2025-03-17", "serviceId": service.id})
        assert response.status_code == 200
        body = response.json()
        assert body["slots"][0] == {"time": "09:00", "displayTime": "09:00 - 10:00", "available": True}
        assert "message" not in body

    def test_closed_day(self, client, db):
        response = client.get("/availability", params={"date": "2025-03-16"})
        assert response.status_code == 200
        assert response.json() == {"slots": [], "message": "We are closed on this day"}

    def test_invalid_date(self, client, db):
        response = client.get("/availability", params={"date": "tomorrow"})
        assert response.status_code == 400
        assert "date" in response.json()["fields"]

    def test_missing_date(self, client, db):
        response = client.get("/availability")
        assert response.status_code == 400


class TestCreateBooking:
    def test_creates_booking(self, client, db):
        service = make_service(db, title="Occupational Therapy")
        response = client.post(
            "/bookings",
            json=booking_payload(service.id, childName="Deniz", childAge="5", notes="First visit"),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["booking"]["date"] == FUTURE_DAY
        assert body["booking"]["time"] == "10:00"
        assert body["booking"]["service"] == "Occupational Therapy"

        db.expire_all()
        booking = db.get(Booking, body["booking"]["id"])
        assert booking.status == "PENDING"
        assert booking.end_time == "11:00"
        assert booking.client.email == "parent@example.com"
        assert booking.client.phone == "+905321234567"
        assert booking.child.name == "Deniz"
        assert booking.notes == "First visit"

        kinds = [t.kind for t in ReminderRepository.get_tasks_for_booking(db, booking.id)]
        assert kinds.count(ReminderKind.REMINDER.value) == 2
        assert kinds.count(ReminderKind.THANK_YOU.value) == 1

    def test_overlapping_booking_conflicts(self, client, db):
        service = make_service(db, duration_minutes=60)
        make_booking(db, date(2099, 3, 16), "10:30", "11:30", service=service)

        response = client.post("/bookings", json=booking_payload(service.id))

        assert response.status_code == 409
        assert "no longer available" in response.json()["error"]
        assert db.query(Booking).count() == 1

    def test_same_slot_twice(self, client, db):
        service = make_service(db)
        assert client.post("/bookings", json=booking_payload(service.id)).status_code == 201
        second = client.post("/bookings", json=booking_payload(service.id, email="other@example.com"))
        assert second.status_code == 409

    def test_cancelled_booking_frees_slot(self, client, db):
        service = make_service(db)
        make_booking(db, date(2099, 3, 16), "10:00", "11:00", status="CANCELLED", service=service)
        response = client.post("/bookings", json=booking_payload(service.id))
        assert response.status_code == 201

    def test_returning_client_is_reused(self, client, db):
        service = make_service(db)
        client.post("/bookings", json=booking_payload(service.id))
        client.post("/bookings", json=booking_payload(service.id, startTime="14:00", name="Ayse D."))
        assert db.query(Client).count() == 1
        assert db.query(Child).count() == 0

    def test_validation_errors(self, client, db):
        service = make_service(db)
        response = client.post(
            "/bookings",
            json=booking_payload(service.id, email="not-an-email", phone="123", name="A"),
        )
        assert response.status_code == 400
        fields = response.json()["fields"]
        assert {"email", "phone", "name"} <= set(fields)

    def test_bad_time_format(self, client, db):
        service = make_service(db)
        response = client.post("/bookings", json=booking_payload(service.id, startTime="10am"))
        assert response.status_code == 400
        assert "startTime" in response.json()["fields"]

    def test_unknown_service(self, client, db):
        response = client.post("/bookings", json=booking_payload(999))
        assert response.status_code == 400
        assert response.json()["error"] == "Service not found"

    def test_booking_past_midnight_rejected(self, client, db):
        service = make_service(db, duration_minutes=90)
        response = client.post("/bookings", json=booking_payload(service.id, startTime="23:00"))
        assert response.status_code == 400


class TestBookingWithinWorkingHours:
    def test_closed_day_rejected(self, client, db):
        service = make_service(db)
        response = client.post("/bookings", json=booking_payload(service.id, date="2099-03-15", startTime="03:00"))

        assert response.status_code == 400
        assert response.json()["error"] == "We are closed on this day"
        assert "date" in response.json()["fields"]
        assert db.query(Booking).count() == 0

    def test_after_hours_rejected(self, client, db):
        service = make_service(db)
        response = client.post("/bookings", json=booking_payload(service.id, startTime="19:00"))

        assert response.status_code == 400
        assert "outside working hours" in response.json()["error"]
        assert db.query(Booking).count() == 0

    def test_running_past_closing_rejected(self, client, db):
        service = make_service(db, duration_minutes=90)
        response = client.post("/bookings", json=booking_payload(service.id, startTime="17:00"))
        assert response.status_code == 400

    def test_before_opening_rejected(self, client, db):
        service = make_service(db)
        response = client.post("/bookings", json=booking_payload(service.id, startTime="08:00"))
        assert response.status_code == 400

    def test_off_grid_start_rejected(self, client, db):
        service = make_service(db)
        response = client.post("/bookings", json=booking_payload(service.id, startTime="10:30"))

        assert response.status_code == 400
        assert response.json()["fields"] == {"startTime": "10:30"}

    def test_last_slot_of_day_ending_at_midnight(self, client, db):
        SettingsService(db).set_working_hours(WorkingHoursPolicy(days={1: DayHours(start_hour=9, end_hour=24)}))
        service = make_service(db, duration_minutes=60)

        slots = client.get("/availability", params={"date": FUTURE_DAY, "serviceId": service.id}).json()["slots"]
        assert slots[-1] == {"time": "23:00", "displayTime": "23:00 - 24:00", "available": True}

        response = client.post("/bookings", json=booking_payload(service.id, startTime="23:00"))
        assert response.status_code == 201

        db.expire_all()
        booking = db.get(Booking, response.json()["booking"]["id"])
        assert booking.end_time == "24:00"

        slots = client.get("/availability", params={"date": FUTURE_DAY, "serviceId": service.id}).json()["slots"]
        assert slots[-1]["time"] == "22:00"

        again = client.post("/bookings", json=booking_payload(service.id, startTime="23:00", email="other@example.com"))
        assert again.status_code == 409

class TestBookingService:
    def test_reminders_only_for_future_instants(self, db):
        service = make_service(db)
        data = BookingCreate(**booking_payload(service.id, date="2025-03-20", startTime="09:00"))
        # 08:30 at +03:00 on the appointment day
        now = datetime(2025, 3, 20, 5, 30, tzinfo=timezone.utc)

        booking = BookingService(db).create_booking(data, now=now)

        tasks = ReminderRepository.get_tasks_for_booking(db, booking.id)
        assert [t.kind for t in tasks] == [ReminderKind.THANK_YOU.value]
        assert tasks[0].send_at == datetime(2025, 3, 20, 9, 0)

    def test_tasks_are_removed_with_booking(self, db):
        service = make_service(db)
        data = BookingCreate(**booking_payload(service.id))
        booking = BookingService(db).create_booking(data, now=datetime.now(timezone.utc) - timedelta(days=1))
        booking_id = booking.id
        assert ReminderRepository.get_tasks_for_booking(db, booking_id)

        db.delete(booking)
        db.commit()
        assert ReminderRepository.get_tasks_for_booking(db, booking_id) == []

    def test_client_created_concurrently_is_reused(self, db):
        service = make_service(db)
        data = BookingCreate(**booking_payload(service.id))
        booking_service = BookingService(db)
        real_upsert = booking_service.repo.get_or_create_client
        calls = []

        def racing_upsert(session, email, name, phone):
            calls.append(email)
            if len(calls) == 1:
                # another request commits the same first-time client first
                make_client(db, email=email)
                raise IntegrityError("INSERT INTO clients", {}, Exception("UNIQUE constraint failed: clients.email"))
            return real_upsert(session, email, name, phone)

        booking_service.repo.get_or_create_client = racing_upsert
        booking = booking_service.create_booking(data, now=datetime(2099, 1, 1, tzinfo=timezone.utc))

        assert len(calls) == 2
        assert booking.status == "PENDING"
        assert db.query(Client).count() == 1
        assert booking.client_id == db.query(Client).one().id

    def test_slot_index_violation_is_a_conflict(self, db):
        service = make_service(db)
        data = BookingCreate(**booking_payload(service.id))
        booking_service = BookingService(db)

        def taken(session, **booking_data):
            raise IntegrityError(
                "INSERT INTO bookings", {}, Exception("UNIQUE constraint failed: bookings.date, bookings.start_time")
            )

        booking_service.repo.add_booking = taken
        with pytest.raises(ConflictError):
            booking_service.create_booking(data)
        assert db.query(Booking).count() == 0

    def test_repeated_other_integrity_error_is_raised(self, db):
        service = make_service(db)
        data = BookingCreate(**booking_payload(service.id))
        booking_service = BookingService(db)

        def broken(session, email, name, phone):
            raise IntegrityError("INSERT INTO clients", {}, Exception("NOT NULL constraint failed: clients.name"))

        booking_service.repo.get_or_create_client = broken
        with pytest.raises(IntegrityError):
            booking_service.create_booking(data)

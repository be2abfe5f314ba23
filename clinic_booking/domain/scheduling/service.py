"""Booking service - Business logic for public booking creation"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import ConflictError, InvalidInputError, NotifierError
from ...models import Booking, BookingStatus
from ...services.notification_service import ReminderMessage
from ..reminders.repository import ReminderRepository
from ..reminders.scheduler import ReminderPolicy, ReminderScheduler
from ..settings.service import SettingsService
from .availability_service import check_within_working_hours
from .conflict_guard import BookingConflictGuard
from .repository import BookingRepository
from .schemas import BookingCreate
from .time_calculator import MINUTES_PER_DAY, format_minutes, parse_date, to_minutes

logger = logging.getLogger(__name__)

SLOT_INDEX_NAME = "uq_bookings_active_slot"


def is_slot_violation(error: IntegrityError) -> bool:
    """True when the unique index on active (date, start_time) rejected the write"""
    message = str(error.orig)
    # PostgreSQL names the index, SQLite lists its columns
    return SLOT_INDEX_NAME in message or "bookings.date, bookings.start_time" in message


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.reminders = ReminderRepository()
        self.settings = SettingsService(db)

    def create_booking(self, data: BookingCreate, now: Optional[datetime] = None) -> Booking:
        """
        Create a PENDING booking and its reminder tasks in one transaction.

        The request must be one of the day's working-hours slots. The day is
        locked and re-checked for overlaps before the insert; the partial
        unique index on (date, start_time) is the last line of defence and its
        violation is reported as a conflict too. Any other integrity error
        (a first-time client created by a concurrent request) is retried once.
        """
        service = self.repo.get_service(self.db, data.serviceId)
        if not service:
            raise InvalidInputError("Service not found", {"serviceId": data.serviceId})

        day = parse_date(data.date)
        start_minutes = to_minutes(data.startTime)
        end_minutes = start_minutes + service.duration_minutes
        if end_minutes > MINUTES_PER_DAY:
            raise InvalidInputError(
                "Appointment must end before midnight", {"startTime": data.startTime}
            )
        end_time = format_minutes(end_minutes)

        for attempt in range(2):
            try:
                booking = self._insert_booking(data, service, day, start_minutes, end_minutes, end_time, now)
                break
            except IntegrityError as e:
                self.db.rollback()
                if is_slot_violation(e):
                    logger.warning(f"⚠️ Slot {day} {data.startTime} taken concurrently")
                    raise ConflictError() from None
                if attempt:
                    raise
                logger.warning(f"⚠️ Integrity error while booking {day} {data.startTime}, retrying: {e.orig}")
            except (ConflictError, InvalidInputError):
                self.db.rollback()
                raise

        self.db.refresh(booking)
        logger.info(
            f"✅ Booking {booking.id} created: {service.title} on {day} "
            f"{booking.start_time}-{booking.end_time} for client {booking.client_id}"
        )
        return booking

    def _insert_booking(self, data, service, day, start_minutes, end_minutes, end_time, now) -> Booking:
        check_within_working_hours(day, start_minutes, end_minutes, self.settings.get_working_hours())
        BookingConflictGuard(self.db).assert_no_conflict(day, data.startTime, end_time)

        client = self.repo.get_or_create_client(self.db, data.email, data.name, data.phone)
        child_id = None
        if data.childName:
            child_id = self.repo.create_child(self.db, client, data.childName, data.childAge).id

        booking = self.repo.add_booking(
            self.db,
            client_id=client.id,
            child_id=child_id,
            service_id=service.id,
            date=day,
            start_time=data.startTime,
            end_time=end_time,
            status=BookingStatus.PENDING.value,
            notes=data.notes,
        )

        policy = ReminderPolicy.from_settings(
            self.settings.get_email_settings(), self.settings.get_site_info()
        )
        tasks = ReminderScheduler(policy).schedule_for(booking, now=now)
        self.reminders.add_tasks(self.db, tasks)

        self.db.commit()
        return booking

    async def send_confirmation(self, booking: Booking) -> bool:
        """Confirmation email after commit; failures are logged, never raised"""
        from ...email_service import send_booking_confirmation

        client = booking.client
        if not client or not client.email:
            return False

        message = ReminderMessage(
            to=client.email,
            name=client.name,
            date=booking.date.isoformat(),
            time=booking.start_time,
            service=booking.service.title,
        )
        try:
            sent = await send_booking_confirmation(
                message,
                self.settings.get_email_settings(),
                site_name=self.settings.get_site_info().site_name,
            )
        except NotifierError as e:
            logger.error(f"❌ Confirmation email for booking {booking.id} failed: {e}")
            return False

        if sent:
            logger.info(f"📧 Confirmation email sent for booking {booking.id}")
        return sent

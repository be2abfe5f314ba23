"""
Reminder scheduler - derives notification tasks from a booking
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from ...models import Booking, ReminderKind, ReminderStatus, ReminderTask
from ..scheduling.time_calculator import combine_local, to_utc_naive
from ..settings.schemas import EmailSettings, SiteInfoSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderPolicy:
    """Everything the scheduler needs, passed in rather than read from settings"""

    reminder_offsets_minutes: tuple[int, ...] = (1440, 240)
    thank_you_offset_minutes: int = 120
    timezone_offset: str = "+03:00"
    enable_reminders: bool = True
    enable_thank_you: bool = True

    @classmethod
    def from_settings(cls, email: EmailSettings, site: SiteInfoSettings) -> "ReminderPolicy":
        return cls(
            reminder_offsets_minutes=tuple(email.reminder_offsets_minutes),
            thank_you_offset_minutes=email.thank_you_offset_minutes,
            timezone_offset=site.timezone_offset,
            enable_reminders=email.enable_reminders,
            enable_thank_you=email.enable_thank_you,
        )


class ReminderScheduler:
    """Computes unsaved ReminderTask rows for a booking"""

    def __init__(self, policy: ReminderPolicy):
        self.policy = policy

    def schedule_for(self, booking: Booking, now: Optional[datetime] = None) -> list[ReminderTask]:
        """
        Tasks whose send time is still in the future.

        Reminders fire ``offset`` minutes before the appointment starts; the
        thank-you fires ``thank_you_offset_minutes`` after it ends. A send time
        at or before ``now`` is dropped rather than fired late.
        """
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        policy = self.policy
        appointment_start = combine_local(booking.date, booking.start_time, policy.timezone_offset)
        appointment_end = combine_local(booking.date, booking.end_time, policy.timezone_offset)

        tasks = []

        if policy.enable_reminders:
            for offset in policy.reminder_offsets_minutes:
                send_at = appointment_start - timedelta(minutes=offset)
                if send_at > now:
                    tasks.append(self._task(booking, ReminderKind.REMINDER, offset, send_at))
                else:
                    logger.debug(f"Reminder {offset}m for booking {booking.id} already due, omitted")

        if policy.enable_thank_you:
            offset = policy.thank_you_offset_minutes
            send_at = appointment_end + timedelta(minutes=offset)
            if send_at > now:
                tasks.append(self._task(booking, ReminderKind.THANK_YOU, offset, send_at))

        logger.info(f"⏰ Scheduled {len(tasks)} notification task(s) for booking {booking.id}")
        return tasks

    @staticmethod
    def _task(booking: Booking, kind: ReminderKind, offset: int, send_at: datetime) -> ReminderTask:
        return ReminderTask(
            booking_id=booking.id,
            kind=kind.value,
            offset_minutes=offset,
            send_at=to_utc_naive(send_at),
            status=ReminderStatus.PENDING.value,
        )

"""
Notification channel used by the reminder dispatcher.

The dispatcher only depends on the Notifier contract:
    True  -> delivered
    False -> channel disabled / not configured (task is SKIPPED)
    raise NotifierError -> delivery attempted and failed (task is FAILED)
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.orm import Session

from ..models import ReminderKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderMessage:
    to: str
    name: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    service: str


class Notifier(Protocol):
    async def send(self, kind: ReminderKind, message: ReminderMessage) -> bool: ...


class EmailNotifier:
    """Delivers reminder and thank-you messages by email using the stored email settings"""

    def __init__(self, db: Session):
        self.db = db
        self._email_settings = None
        self._site_name = None

    def _settings(self):
        if self._email_settings is None:
            from ..domain.settings.service import SettingsService

            settings = SettingsService(self.db)
            self._email_settings = settings.get_email_settings()
            self._site_name = settings.get_site_info().site_name
        return self._email_settings

    async def send(self, kind: ReminderKind, message: ReminderMessage) -> bool:
        from ..email_service import send_booking_reminder_email, send_booking_thank_you_email

        settings = self._settings()
        if kind == ReminderKind.REMINDER:
            return await send_booking_reminder_email(message, settings, self._site_name)
        if kind == ReminderKind.THANK_YOU:
            return await send_booking_thank_you_email(message, settings, self._site_name)

        logger.warning(f"⚠️ No email channel for notification kind {kind}")
        return False


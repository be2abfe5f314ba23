"""
Reminder dispatch worker

State machine per task: PENDING -> SENT | SKIPPED | FAILED. Terminal states
are never revisited here; FAILED and SKIPPED tasks need manual remediation.
Invoked periodically from outside (cron endpoint or ARQ cron job); it never
schedules itself.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...config import REMINDER_BATCH_LIMIT
from ...errors import NotifierError
from ...models import BookingStatus, ReminderKind, ReminderStatus, ReminderTask
from ...services.notification_service import Notifier, ReminderMessage
from ..scheduling.time_calculator import to_utc_naive
from .repository import ReminderRepository

logger = logging.getLogger(__name__)

DEFAULT_RECIPIENT_NAME = "Client"


class ReminderDispatchWorker:
    """Sends due reminder tasks through a Notifier and records each outcome"""

    def __init__(self, db: Session, notifier: Notifier):
        self.db = db
        self.notifier = notifier
        self.repo = ReminderRepository()

    async def run_due_reminders(
        self, now: Optional[datetime] = None, batch_limit: int = REMINDER_BATCH_LIMIT
    ) -> int:
        """
        Process up to ``batch_limit`` due tasks.

        Each task is committed on its own; an error on one task is recorded
        on that task and the batch continues.

        Returns:
            Number of tasks moved out of PENDING by this call
        """
        now_utc = to_utc_naive(now or datetime.now(timezone.utc))
        due = self.repo.get_due_tasks(self.db, now_utc, batch_limit)
        if not due:
            logger.debug("ℹ️ No reminder tasks due")
            return 0

        logger.info(f"📬 Dispatching {len(due)} due reminder task(s)")
        task_ids = [task.id for task in due]
        processed = 0

        for task_id in task_ids:
            try:
                task = self.repo.claim(self.db, task_id)
                if task is None:
                    self.db.rollback()
                    logger.debug(f"Reminder task {task_id} already handled elsewhere")
                    continue
                await self._process(task, now_utc)
                self.db.commit()
                processed += 1
            except Exception as e:
                self.db.rollback()
                logger.error(f"❌ Reminder task {task_id} failed unexpectedly: {e}")
                if self._record_failure(task_id, str(e) or e.__class__.__name__):
                    processed += 1

        logger.info(f"📊 Reminder dispatch complete: {processed}/{len(task_ids)} processed")
        return processed

    async def _process(self, task: ReminderTask, now_utc: datetime) -> None:
        booking = task.booking

        if booking.status == BookingStatus.CANCELLED.value:
            self._transition(task, ReminderStatus.SKIPPED, "Booking cancelled")
            return

        client = booking.client
        if not client or not client.email:
            self._transition(task, ReminderStatus.FAILED, "Missing client email")
            return

        message = ReminderMessage(
            to=client.email,
            name=client.name or DEFAULT_RECIPIENT_NAME,
            date=booking.date.isoformat(),
            time=booking.start_time,
            service=booking.service.title,
        )

        try:
            delivered = await self.notifier.send(ReminderKind(task.kind), message)
        except NotifierError as e:
            self._transition(task, ReminderStatus.FAILED, str(e) or "Send failed")
            return

        if delivered:
            task.sent_at = now_utc
            self._transition(task, ReminderStatus.SENT)
        else:
            self._transition(task, ReminderStatus.SKIPPED, "Notification channel disabled")

    def _transition(
        self, task: ReminderTask, status: ReminderStatus, error: Optional[str] = None
    ) -> None:
        task.status = status.value
        task.error_message = error
        log = logger.info if status == ReminderStatus.SENT else logger.warning
        log(f"{task.kind} task {task.id} for booking {task.booking_id}: {status.value}"
            + (f" ({error})" if error else ""))

    def _record_failure(self, task_id: int, error: str) -> bool:
        """Best-effort FAILED mark after an unexpected error; True if recorded"""
        try:
            task = self.repo.claim(self.db, task_id)
            if task is None:
                self.db.rollback()
                return False
            self._transition(task, ReminderStatus.FAILED, error[:1000])
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Could not record failure for reminder task {task_id}: {e}")
            return False

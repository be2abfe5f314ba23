"""Reminder repository - Database operations for reminder tasks"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Booking, ReminderStatus, ReminderTask


class ReminderRepository:
    """Repository for reminder task database operations"""

    @staticmethod
    def add_tasks(db: Session, tasks: list[ReminderTask]) -> None:
        """Stage tasks in the current transaction. Caller commits."""
        if tasks:
            db.add_all(tasks)
            db.flush()

    @staticmethod
    def get_due_tasks(db: Session, now_utc: datetime, limit: int) -> list[ReminderTask]:
        """PENDING tasks due at ``now_utc`` (naive UTC), oldest send time first"""
        return (
            db.query(ReminderTask)
            .options(
                joinedload(ReminderTask.booking, innerjoin=True).joinedload(
                    Booking.client, innerjoin=True
                ),
                joinedload(ReminderTask.booking, innerjoin=True).joinedload(
                    Booking.service, innerjoin=True
                ),
            )
            .filter(
                ReminderTask.status == ReminderStatus.PENDING.value,
                ReminderTask.send_at <= now_utc,
            )
            .order_by(ReminderTask.send_at.asc(), ReminderTask.id.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def claim(db: Session, task_id: int) -> Optional[ReminderTask]:
        """
        Re-read and row-lock a task if it is still PENDING.

        Concurrent dispatchers skip rows another one holds, so each task is
        sent at most once. Returns None if the task was taken or finished.
        """
        return (
            db.query(ReminderTask)
            .filter(
                ReminderTask.id == task_id,
                ReminderTask.status == ReminderStatus.PENDING.value,
            )
            .with_for_update(skip_locked=True, of=ReminderTask)
            .populate_existing()
            .first()
        )

    @staticmethod
    def get_tasks_for_booking(db: Session, booking_id: int) -> list[ReminderTask]:
        return (
            db.query(ReminderTask)
            .filter(ReminderTask.booking_id == booking_id)
            .order_by(ReminderTask.send_at.asc())
            .all()
        )

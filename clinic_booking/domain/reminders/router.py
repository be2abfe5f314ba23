"""Reminder router - cron trigger for reminder dispatch"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...security import verify_cron_secret
from ...services.notification_service import EmailNotifier, Notifier
from .dispatch import ReminderDispatchWorker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


def get_notifier(db: Session = Depends(get_db)) -> Notifier:
    """Dependency injection for the reminder notification channel"""
    return EmailNotifier(db)


def get_dispatch_worker(
    db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)
) -> ReminderDispatchWorker:
    return ReminderDispatchWorker(db, notifier)


@router.api_route("/reminders", methods=["GET", "POST"])
async def run_reminders(worker: ReminderDispatchWorker = Depends(get_dispatch_worker)):
    """Send every reminder task that is due now"""
    processed = await worker.run_due_reminders()
    return {"success": True, "processed": processed}

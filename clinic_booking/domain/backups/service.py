"""Backup service - recurring JSON export of booking data to object storage"""

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session, joinedload

from ...models import BackupExport, BackupStatus, Booking, Client, ReminderTask, Service
from ...utils.storage import upload_json
from ..scheduling.time_calculator import is_run_due, parse_utc_offset, to_utc_naive
from ..settings.service import SettingsService

logger = logging.getLogger(__name__)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _serialize_service(service: Service) -> dict:
    return {
        "id": service.id,
        "title": service.title,
        "slug": service.slug,
        "durationMinutes": service.duration_minutes,
        "isActive": service.is_active,
    }


def _serialize_client(client: Client) -> dict:
    return {
        "id": client.id,
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "createdAt": _iso(client.created_at),
        "children": [
            {"id": child.id, "name": child.name, "age": child.age} for child in client.children
        ],
    }


def _serialize_booking(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "clientId": booking.client_id,
        "childId": booking.child_id,
        "serviceId": booking.service_id,
        "service": booking.service.title if booking.service else None,
        "date": _iso(booking.date),
        "startTime": booking.start_time,
        "endTime": booking.end_time,
        "status": booking.status,
        "notes": booking.notes,
        "createdAt": _iso(booking.created_at),
    }


def _serialize_task(task: ReminderTask) -> dict:
    return {
        "id": task.id,
        "bookingId": task.booking_id,
        "kind": task.kind,
        "offsetMinutes": task.offset_minutes,
        "sendAt": _iso(task.send_at),
        "status": task.status,
        "errorMessage": task.error_message,
        "sentAt": _iso(task.sent_at),
    }


class BackupService:
    """Service layer for backup exports"""

    def __init__(self, db: Session, uploader: Callable[[str, str], str] = upload_json):
        self.db = db
        self.settings = SettingsService(db)
        self.uploader = uploader

    def _site_now(self) -> datetime:
        offset = parse_utc_offset(self.settings.get_site_info().timezone_offset)
        return datetime.now(timezone.utc).astimezone(offset)

    def should_run_backup(self, now: Optional[datetime] = None) -> bool:
        """
        True when the configured recurrence has passed a scheduled instant
        since the last successful run. Schedule fields are read in the
        clinic's timezone.
        """
        now = now or self._site_now()
        return is_run_due(self.settings.get_backup_settings(), now)

    def mark_backup_run(self, when: Optional[datetime] = None) -> None:
        backup = self.settings.get_backup_settings()
        backup.last_run_at = when or datetime.now(timezone.utc)
        self.settings.set_backup_settings(backup)
        logger.info(f"📦 Backup last run recorded at {backup.last_run_at.isoformat()}")

    def build_payload(self) -> str:
        services = self.db.query(Service).order_by(Service.id).all()
        clients = (
            self.db.query(Client).options(joinedload(Client.children)).order_by(Client.id).all()
        )
        bookings = (
            self.db.query(Booking).options(joinedload(Booking.service)).order_by(Booking.id).all()
        )
        tasks = self.db.query(ReminderTask).order_by(ReminderTask.id).all()

        return json.dumps(
            {
                "generatedAt": datetime.now(timezone.utc).isoformat(),
                "services": [_serialize_service(s) for s in services],
                "clients": [_serialize_client(c) for c in clients],
                "bookings": [_serialize_booking(b) for b in bookings],
                "reminderTasks": [_serialize_task(t) for t in tasks],
            },
            indent=2,
        )

    def create_backup_export(self) -> BackupExport:
        """
        Export, upload and record the outcome.

        Upload or serialization errors mark the export FAILED with the error
        message; they are not raised.
        """
        record = BackupExport(status=BackupStatus.PENDING.value)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)

        try:
            payload = self.build_payload()
            file_key = f"backup-{datetime.now(timezone.utc).strftime('%Y-%m-%dT%H-%M-%S-%fZ')}.json"
            file_url = self.uploader(file_key, payload)

            record.status = BackupStatus.COMPLETED.value
            record.file_key = file_key
            record.file_url = file_url
            record.completed_at = to_utc_naive(datetime.now(timezone.utc))
            logger.info(f"✅ Backup export {record.id} completed: {file_key}")
        except Exception as e:
            self.db.rollback()
            record.status = BackupStatus.FAILED.value
            record.error_message = str(e) or "Backup failed"
            logger.error(f"❌ Backup export {record.id} failed: {e}")

        self.db.commit()
        self.db.refresh(record)
        return record

    def run_if_due(self) -> dict:
        """Cron entry point: skip when not due, else export and record the run on success"""
        if not self.should_run_backup():
            return {"success": True, "skipped": True}

        record = self.create_backup_export()
        if record.status == BackupStatus.COMPLETED.value:
            self.mark_backup_run()
        return {"success": True, "result": serialize_export(record)}


def serialize_export(record: BackupExport) -> dict:
    return {
        "id": record.id,
        "status": record.status,
        "fileKey": record.file_key,
        "fileUrl": record.file_url,
        "errorMessage": record.error_message,
        "createdAt": _iso(record.created_at),
        "completedAt": _iso(record.completed_at),
    }

"""Backup router - cron trigger for the recurring backup export"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...security import verify_cron_secret
from .service import BackupService

router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


def get_backup_service(db: Session = Depends(get_db)) -> BackupService:
    """Dependency injection for BackupService"""
    return BackupService(db)


@router.api_route("/backups", methods=["GET", "POST"])
async def run_backups(service: BackupService = Depends(get_backup_service)):
    """Run the backup export if the configured schedule says it is due"""
    return service.run_if_due()

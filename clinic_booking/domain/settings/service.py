"""Settings service - merges stored records over defaults into typed models"""

import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from .repository import SettingsRepository
from .schemas import BackupSettings, EmailSettings, SiteInfoSettings, WorkingHoursPolicy

logger = logging.getLogger(__name__)

SITE_INFO_KEY = "site_info"
EMAIL_KEY = "email"
BACKUP_KEY = "backup"
WORKING_HOURS_KEY = "working_hours"

T = TypeVar("T", bound=BaseModel)


class SettingsService:
    """Read and write typed settings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SettingsRepository()

    def _load(self, key: str, model: type[T]) -> T:
        stored = self.repo.get_value(self.db, key)
        if not stored:
            return model()
        try:
            return model.model_validate({**model().model_dump(), **stored})
        except ValidationError as e:
            logger.error(f"❌ Invalid stored settings for '{key}', using defaults: {e}")
            return model()

    def _save(self, key: str, value: BaseModel) -> None:
        self.repo.set_value(self.db, key, value.model_dump(mode="json"))
        self.db.commit()

    def get_site_info(self) -> SiteInfoSettings:
        return self._load(SITE_INFO_KEY, SiteInfoSettings)

    def get_email_settings(self) -> EmailSettings:
        return self._load(EMAIL_KEY, EmailSettings)

    def get_backup_settings(self) -> BackupSettings:
        return self._load(BACKUP_KEY, BackupSettings)

    def get_working_hours(self) -> WorkingHoursPolicy:
        return self._load(WORKING_HOURS_KEY, WorkingHoursPolicy)

    def set_site_info(self, value: SiteInfoSettings) -> None:
        self._save(SITE_INFO_KEY, value)

    def set_email_settings(self, value: EmailSettings) -> None:
        self._save(EMAIL_KEY, value)

    def set_backup_settings(self, value: BackupSettings) -> None:
        self._save(BACKUP_KEY, value)

    def set_working_hours(self, value: WorkingHoursPolicy) -> None:
        self._save(WORKING_HOURS_KEY, value)

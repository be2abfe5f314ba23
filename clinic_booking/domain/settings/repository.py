"""Settings repository - Database operations for key/value settings"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import SiteSetting


class SettingsRepository:
    """Repository for settings records"""

    @staticmethod
    def get_value(db: Session, key: str) -> Optional[dict]:
        record = db.query(SiteSetting).filter(SiteSetting.key == key).first()
        return record.value if record else None

    @staticmethod
    def set_value(db: Session, key: str, value: dict) -> SiteSetting:
        """Insert or replace a settings record. Caller commits."""
        record = db.query(SiteSetting).filter(SiteSetting.key == key).first()
        if record:
            record.value = value
        else:
            record = SiteSetting(key=key, value=value)
            db.add(record)
        db.flush()
        return record

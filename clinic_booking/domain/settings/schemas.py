"""Settings domain schemas - typed views over the JSON settings records"""

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_time_hhmm

UTC_OFFSET_PATTERN = re.compile(r"^[+-]([01]\d|2[0-3]):[0-5]\d$")


class SiteInfoSettings(BaseModel):
    site_name: str = "Clinic"
    email: Optional[str] = None
    phone: Optional[str] = None
    # Fixed UTC offset used to interpret stored wall-clock times, e.g. "+03:00"
    timezone_offset: str = "+03:00"

    @field_validator("timezone_offset")
    @classmethod
    def validate_offset(cls, v):
        if not UTC_OFFSET_PATTERN.match(v):
            raise ValueError("timezone_offset must look like +03:00")
        return v


class EmailTemplateSettings(BaseModel):
    confirmation_subject: str = "Your appointment is booked"
    confirmation_body: str = (
        "Hello {{name}}, your appointment has been received. "
        "Date: {{date}}, Time: {{time}}, Service: {{service}}."
    )
    reminder_subject: str = "Appointment reminder"
    reminder_body: str = (
        "Hello {{name}}, your appointment is coming up. "
        "Date: {{date}}, Time: {{time}}, Service: {{service}}."
    )
    thank_you_subject: str = "Thank you for your visit"
    thank_you_body: str = "Hello {{name}}, thank you for your visit. We would love your feedback."


class EmailSettings(BaseModel):
    from_name: str = "Clinic"
    from_email: str = "onboarding@resend.dev"
    reply_to: Optional[str] = None
    use_resend_override: bool = False
    resend_api_key_encrypted: Optional[str] = None
    enable_booking_confirmation: bool = True
    enable_reminders: bool = True
    reminder_offsets_minutes: list[int] = Field(default_factory=lambda: [1440, 240])
    enable_thank_you: bool = True
    thank_you_offset_minutes: int = 120
    templates: EmailTemplateSettings = Field(default_factory=EmailTemplateSettings)


class BackupSettings(BaseModel):
    """Recurrence policy for the backup export"""

    frequency: Literal["manual", "daily", "weekly", "monthly"] = "weekly"
    time: str = "02:00"
    day_of_week: int = Field(default=1, ge=0, le=6)  # 0 = Sunday
    day_of_month: int = Field(default=1, ge=1, le=31)  # clamped to 28 when computing
    last_run_at: Optional[datetime] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_time_hhmm(v)


# Name used by the schedule calculator; the backup settings are one instance of it
RecurrencePolicy = BackupSettings


class DayHours(BaseModel):
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=1, le=24)

    @model_validator(mode="after")
    def check_order(self):
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be after start_hour")
        return self


class WorkingHoursPolicy(BaseModel):
    """
    Opening hours per day of week (0 = Sunday ... 6 = Saturday).
    A missing or null day is closed.
    """

    days: dict[int, Optional[DayHours]] = Field(
        default_factory=lambda: {
            0: None,
            1: DayHours(start_hour=9, end_hour=18),
            2: DayHours(start_hour=9, end_hour=18),
            3: DayHours(start_hour=9, end_hour=18),
            4: DayHours(start_hour=9, end_hour=18),
            5: DayHours(start_hour=9, end_hour=18),
            6: DayHours(start_hour=9, end_hour=14),
        }
    )
    slot_step_minutes: int = Field(default=60, ge=5, le=240)
    closed_message: str = "We are closed on this day"

    @field_validator("days")
    @classmethod
    def validate_days(cls, v):
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("day of week must be between 0 (Sunday) and 6 (Saturday)")
        return v

    def hours_for(self, day_of_week: int) -> Optional[DayHours]:
        return self.days.get(day_of_week)

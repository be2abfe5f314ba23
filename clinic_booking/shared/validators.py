"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}([T ].*)?$")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Accepts local (0532 ...) and international (+90 532 ...) formats.

    Returns:
        Digits only, with a leading "+" when one was given

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    has_plus = phone.strip().startswith("+")
    digits = re.sub(r"\D", "", phone)

    if len(digits) < 10 or len(digits) > 15:
        raise ValueError("Phone number must contain 10 to 15 digits")

    return f"+{digits}" if has_plus else digits


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_time_hhmm(value: str) -> str:
    """Validate a 24h "HH:MM" wall-clock string"""
    if not isinstance(value, str) or not TIME_PATTERN.match(value.strip()):
        raise ValueError("Time must be in HH:MM format")
    return value.strip()


def validate_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (a trailing "T..." or " ..." time component is ignored)"""
    if not isinstance(value, str):
        raise ValueError("Date must be a string in YYYY-MM-DD format")
    value = value.strip()
    if not ISO_DATE_PATTERN.match(value):
        raise ValueError("Invalid date format. Expected YYYY-MM-DD")
    try:
        return datetime.fromisoformat(value[:10]).date()
    except ValueError:
        raise ValueError("Invalid date format. Expected YYYY-MM-DD") from None

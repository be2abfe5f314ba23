from typing import Optional


def strip_and_truncate(value: Optional[str], max_length: int = 500) -> Optional[str]:
    """Trim whitespace and cap free-text input; empty strings become None"""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return value[:max_length]

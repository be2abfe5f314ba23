"""
Shared-secret check for scheduled /cron/* endpoints
"""

import logging
import secrets
from typing import Optional

from fastapi import Header

from . import config
from .errors import UnauthorizedError

logger = logging.getLogger(__name__)


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks"""
    return secrets.compare_digest(a.encode(), b.encode())


def is_authorized_cron_request(authorization: Optional[str], secret: Optional[str]) -> bool:
    """
    An unset secret leaves cron endpoints open (local development);
    otherwise the header must be exactly ``Bearer <secret>``.
    """
    if not secret:
        return True
    if not authorization:
        return False
    return constant_time_compare(authorization, f"Bearer {secret}")


async def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """FastAPI dependency guarding cron routes"""
    if not is_authorized_cron_request(authorization, config.CRON_SECRET):
        logger.warning("⚠️ Rejected cron request with missing or invalid secret")
        raise UnauthorizedError("Unauthorized")

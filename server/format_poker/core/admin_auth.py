"""Shared-secret authentication for catalog administration."""

import logging
import secrets

from fastapi import Header, HTTPException

from format_poker.core.config import get_settings

logger = logging.getLogger(__name__)


async def verify_admin_key(x_admin_key: str | None = Header(default=None)) -> None:
    """
    Verify the X-Admin-Key header against the configured admin key.

    Uses constant-time comparison and returns the same 401 for a missing,
    unconfigured or wrong key.
    """
    settings = get_settings()

    if not settings.admin_key:
        logger.error("Admin key not configured - rejecting admin request")
        raise HTTPException(status_code=401, detail="Authentication failed")

    if not x_admin_key or not secrets.compare_digest(
        x_admin_key.encode(), settings.admin_key.encode()
    ):
        raise HTTPException(status_code=401, detail="Authentication failed")

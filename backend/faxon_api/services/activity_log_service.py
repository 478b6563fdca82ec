"""
Faxon Portal API — Activity Log Service
========================================

What:  Appends audit entries to `activity_logs` without ever failing the
       request that triggered them.
How:   Each entry is written inside a SAVEPOINT (`begin_nested`). When the
       insert fails only the savepoint is rolled back, so the caller's own
       work in the same session is untouched and still commits.
Who:   AuthService (logout, profile view, OTP request, login).

The document delete writes its log row itself, inside its transaction:
there the log is part of the unit of work and must not be best-effort.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from faxon_api.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp for `details` payloads."""
    return datetime.now(timezone.utc).isoformat()


class ActivityLogService:
    """Best-effort writer for audit trail entries."""

    async def record(
        self,
        db: AsyncSession,
        action: str,
        resource_type: str,
        resource_id: Optional[Union[int, str]] = None,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
    ) -> bool:
        """
        Write one entry; return False instead of raising when it fails.

        Args:
            db:            Session of the current request
            action:        e.g. "profile_viewed"
            resource_type: e.g. "user", "auth"
            resource_id:   Id of the affected row (stored as text)
            details:       Free-form JSON payload
            user_id:       Acting team member, when known
        """
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=details,
        )
        try:
            async with db.begin_nested():
                db.add(entry)
        except Exception as e:
            logger.warning(
                "Failed to log %s activity for %s %s: %s",
                action,
                resource_type,
                resource_id,
                str(e),
            )
            return False

        logger.debug("Activity logged: %s %s:%s", action, resource_type, resource_id)
        return True


activity_log_service = ActivityLogService()

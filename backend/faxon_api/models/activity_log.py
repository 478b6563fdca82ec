"""
Faxon Portal API — ActivityLog Model
=====================================

What:  Append-only audit trail (`activity_logs`).
Who:   Written by ActivityLogService (best-effort) and, inside its own
       transaction, by DocumentService. Never read by the API.

Actions written by this service:
    logout_success, profile_viewed, login_success, otp_requested, otp_resent,
    delete
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from faxon_api.database import Base


class ActivityLog(Base):
    """A single audit trail entry."""

    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
    details: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityLog(id={self.id}, action='{self.action}', "
            f"resource='{self.resource_type}:{self.resource_id}')>"
        )

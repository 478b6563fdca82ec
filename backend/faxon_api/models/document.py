"""
Faxon Portal API — Document Model
==================================

What:  ORM model for the `documents` table.
How:   Each row points at a file held by Zoho WorkDrive. `provider_file_id`
       stores WorkDrive's own identifier; rows written before that column
       existed only have `file_url`, and the id is recovered from the URL.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from faxon_api.database import Base


class Document(Base):
    """A document owned by a team member and stored in Zoho WorkDrive."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    file_url: Mapped[str] = mapped_column(Text, nullable=False)
    provider_file_id: Mapped[Optional[str]] = mapped_column(
        String(128),
        nullable=True,
        comment="Zoho WorkDrive resource id; NULL on legacy rows",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, user_id={self.user_id}, title='{self.title}')>"

"""
Faxon Portal API — Document Service
====================================

What:  Deletes a team member's document together with its audit entry.
How:   One explicit transaction around two statements:

    ┌───────────────────────┐    ┌──────────────────────┐    ┌──────────┐
    │ DELETE FROM documents │───▶│ INSERT activity_logs │───▶│  COMMIT  │
    │ WHERE id AND user_id  │    │ action = 'delete'    │    └──────────┘
    └───────────────────────┘    └──────────────────────┘
                 └──────────── any failure ───────────────▶ ROLLBACK

    The log row is only visible if the delete committed, and vice versa.
    Removing the file from Zoho WorkDrive happens afterwards, outside the
    transaction, as a background task scheduled by the route.

Who:   routes/documents.py
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from faxon_api.database import translate_db_error
from faxon_api.exceptions import DatabaseError, NotFoundError
from faxon_api.models.activity_log import ActivityLog
from faxon_api.models.document import Document
from faxon_api.services.providers.zoho_workdrive import extract_file_id

logger = logging.getLogger(__name__)


class DocumentService:
    """Owner-scoped document operations."""

    async def get_owned(self, db: AsyncSession, document_id: int, user_id: int) -> Document:
        """
        Fetch a document only if `user_id` owns it.

        Raises:
            NotFoundError: absent or owned by someone else (404, same message
                           for both so ownership is not disclosed)
        """
        try:
            result = await db.execute(
                select(Document).where(
                    Document.id == document_id,
                    Document.user_id == user_id,
                )
            )
            document = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Document lookup %s failed: %s", document_id, str(e))
            raise translate_db_error(e, document_id=document_id) from e

        if document is None:
            raise NotFoundError(
                message="Document not found or unauthorized",
                resource="document",
                resource_id=str(document_id),
                context={"user_id": user_id},
            )
        return document

    def _deletion_log(self, document: Document, user_id: int) -> ActivityLog:
        return ActivityLog(
            user_id=user_id,
            action="delete",
            resource_type="document",
            resource_id=str(document.id),
            details={"title": document.title},
        )

    async def delete_document(
        self, db: AsyncSession, document_id: int, user_id: int
    ) -> Optional[str]:
        """
        Delete a document and log the deletion atomically.

        Returns:
            The WorkDrive file id to remove remotely, or None when the row has
            neither a stored id nor a recognisable WorkDrive URL.

        Raises:
            NotFoundError: document absent or not owned by `user_id` (404)
            DatabaseError: the transaction failed and was rolled back (500)
        """
        document = await self.get_owned(db, document_id, user_id)
        file_id = document.provider_file_id or extract_file_id(document.file_url)
        log_entry = self._deletion_log(document, user_id)

        try:
            await db.execute(
                delete(Document).where(
                    Document.id == document_id,
                    Document.user_id == user_id,
                )
            )
            db.add(log_entry)
            await db.flush()
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(
                "Delete of document %s rolled back: %s",
                document_id,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                message="Delete failed",
                context={"document_id": document_id, "error_type": type(e).__name__},
            ) from e

        logger.info("Document %s deleted by member %s", document_id, user_id)
        return file_id


document_service = DocumentService()

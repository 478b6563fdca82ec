"""
Faxon Portal API — Document Route Handlers
===========================================

What:  DELETE /api/blog/products/delete?id=<doc>&userId=<owner>
How:   Validates the query, runs the transactional delete, then schedules
       the WorkDrive delete as a background task. The response never waits
       for (or reports on) the remote delete.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from faxon_api.database import get_db_session
from faxon_api.exceptions import ValidationError
from faxon_api.schemas.common import ErrorResponse, MessageResponse
from faxon_api.services.auth_service import parse_positive_id
from faxon_api.services.background import run_best_effort
from faxon_api.services.document_service import document_service
from faxon_api.services.providers import ZohoWorkDrive, get_document_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blog/products", tags=["Documents"])


@router.delete(
    "/delete",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing or malformed ids", "model": ErrorResponse},
        404: {"description": "Not found or not owned by userId", "model": ErrorResponse},
        500: {"description": "Delete failed (rolled back)", "model": ErrorResponse},
    },
    summary="Delete a document owned by the caller",
)
async def delete_document(
    background_tasks: BackgroundTasks,
    id: Optional[str] = Query(default=None, description="Document id"),
    documentId: Optional[str] = Query(default=None, description="Alias of `id`"),
    userId: Optional[str] = Query(default=None, description="Owner's team member id"),
    db: AsyncSession = Depends(get_db_session),
    storage: ZohoWorkDrive = Depends(get_document_storage),
) -> MessageResponse:
    raw_document_id = id if id is not None else documentId
    if not raw_document_id or not userId:
        raise ValidationError(message="Document ID and User ID are required")

    document_id = parse_positive_id(raw_document_id)
    user_id = parse_positive_id(userId)
    if document_id is None or user_id is None:
        raise ValidationError(
            message="Document ID and User ID must be positive integers",
            context={"id": raw_document_id, "userId": userId},
        )

    file_id = await document_service.delete_document(db, document_id, user_id)

    if file_id:
        background_tasks.add_task(run_best_effort, "zoho_delete", storage.delete_file, file_id)
    else:
        logger.warning("Document %s had no WorkDrive file id; remote copy left in place", document_id)

    return MessageResponse(message="Document deleted successfully")

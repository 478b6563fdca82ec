"""
Faxon Portal API — Storage Route Handlers
==========================================

What:  POST /api/storage (multipart image upload) and DELETE /api/storage
       (remove an image by its public URL).
How:   Form fields are read as optional so that a missing file is reported
       by AssetService with its own message instead of a schema error.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from faxon_api.schemas.common import ErrorResponse, MessageResponse
from faxon_api.schemas.storage import ImageDeleteRequest, UploadResponse
from faxon_api.services.asset_service import asset_service
from faxon_api.services.providers import SupabaseStorage, get_asset_storage

router = APIRouter(prefix="/api", tags=["Storage"])


@router.post(
    "/storage",
    response_model=UploadResponse,
    responses={
        400: {"description": "Missing file, bad type, too large", "model": ErrorResponse},
        500: {"description": "Storage provider error", "model": ErrorResponse},
    },
    summary="Upload an image to the asset bucket",
)
async def upload_image(
    file: Optional[UploadFile] = File(default=None, description="JPEG, PNG or WebP, at most 5MB"),
    folder: Optional[str] = Form(default=None, description="Bucket folder (default: uploads)"),
    fileName: Optional[str] = Form(default=None, description="Object name; generated when absent"),
    storage: SupabaseStorage = Depends(get_asset_storage),
) -> UploadResponse:
    return await asset_service.upload(storage, file, folder=folder, file_name=fileName)


@router.delete(
    "/storage",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing or malformed image URL", "model": ErrorResponse},
        500: {"description": "Storage provider error", "model": ErrorResponse},
    },
    summary="Delete an image by its public URL",
)
async def delete_image(
    payload: Optional[ImageDeleteRequest] = None,
    storage: SupabaseStorage = Depends(get_asset_storage),
) -> MessageResponse:
    return await asset_service.delete(storage, payload.image_url if payload else None)

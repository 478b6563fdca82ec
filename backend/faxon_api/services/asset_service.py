"""
Faxon Portal API — Asset Service
=================================

What:  Validates image uploads and hands them to Supabase Storage; removes
       them again by public URL.
How:   Checks run cheapest-first and stop at the first failure:

    1. File present            → "No file provided"
    2. Declared MIME type      → JPEG / PNG / WebP only (before size, so a
                                 wrong type is reported whatever its size)
    3. Size                    → at most settings.max_image_size (5MB)
    4. Folder / file name      → sanitised into a safe object path

Who:   routes/storage.py
"""

import logging
import re
import time
from typing import List, Optional

from fastapi import UploadFile

from faxon_api.config import settings
from faxon_api.exceptions import ValidationError
from faxon_api.schemas.common import MessageResponse
from faxon_api.schemas.storage import UploadResponse
from faxon_api.services.providers.supabase_storage import SupabaseStorage

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")

DEFAULT_FOLDER = "uploads"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_name(name: str) -> str:
    """Whitespace becomes `_`; anything outside [A-Za-z0-9._-] is dropped."""
    return _UNSAFE_CHARS.sub("", _WHITESPACE.sub("_", name.strip()))


def sanitize_folder(folder: Optional[str]) -> str:
    """
    Turn a client-supplied folder into a bucket-relative prefix.

        "blog posts/2024" → "blog_posts/2024"
        "../etc"          → ValidationError

    Raises:
        ValidationError: a segment is empty after sanitising, or is "." / ".."
    """
    folder = (folder or "").strip().strip("/")
    if not folder:
        return DEFAULT_FOLDER

    segments: List[str] = []
    for raw in folder.split("/"):
        segment = sanitize_name(raw)
        if not segment or segment in (".", ".."):
            raise ValidationError(
                message="Invalid folder name",
                field="folder",
                context={"folder": folder},
            )
        segments.append(segment)
    return "/".join(segments)


def _too_large(actual_size: int) -> ValidationError:
    max_mb = settings.max_image_size / (1024 * 1024)
    return ValidationError(
        message=f"File size too large. Maximum size is {max_mb:.0f}MB.",
        field="file",
        context={"max_size": settings.max_image_size, "actual_size": actual_size},
    )


class AssetService:
    """Image asset upload/delete against the object store."""

    async def upload(
        self,
        storage: SupabaseStorage,
        file: Optional[UploadFile],
        folder: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> UploadResponse:
        """
        Validate and store an image; return its public URL.

        Raises:
            ValidationError:      missing file, bad type, too large, bad names (400)
            StorageProviderError: Supabase refused the upload (500)
        """
        if file is None:
            raise ValidationError(message="No file provided", field="file")

        content_type = (file.content_type or "").lower()
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(
                message="Invalid file type. Only JPEG, PNG, and WebP images are allowed.",
                field="file",
                context={"content_type": content_type, "allowed": list(ALLOWED_IMAGE_TYPES)},
            )

        # Reject on the spooled size before reading; the length check after
        # the read covers uploads whose size is unknown
        if file.size is not None and file.size > settings.max_image_size:
            raise _too_large(file.size)

        content = await file.read()
        if len(content) > settings.max_image_size:
            raise _too_large(len(content))

        prefix = sanitize_folder(folder)
        if file_name:
            name = sanitize_name(file_name)
        else:
            original = sanitize_name(file.filename or "") or "upload"
            name = f"{int(time.time() * 1000)}-{original}"
        if not name or name in (".", ".."):
            raise ValidationError(
                message="Invalid file name",
                field="fileName",
                context={"file_name": file_name},
            )

        path = f"{prefix}/{name}"
        url = await storage.upload(path, content, content_type)
        logger.info("Image stored at %s (%d bytes)", path, len(content))
        return UploadResponse(url=url)

    async def delete(self, storage: SupabaseStorage, image_url: Optional[str]) -> MessageResponse:
        """
        Delete an image by the public URL `upload` returned.

        Raises:
            ValidationError:      URL missing or without a path after the bucket (400)
            StorageProviderError: Supabase refused the delete (500)
        """
        if not image_url:
            raise ValidationError(message="No image URL provided", field="imageUrl")

        path = storage.path_from_url(image_url)
        if path is None:
            raise ValidationError(
                message="Invalid image URL format",
                field="imageUrl",
                context={"bucket": storage.bucket},
            )

        await storage.delete([path])
        logger.info("Image %s deleted", path)
        return MessageResponse(message="File deleted successfully")


asset_service = AssetService()

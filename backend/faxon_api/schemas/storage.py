"""
Faxon Portal API — Storage Schemas
===================================

What:  Contracts for /api/storage (image assets on Supabase Storage).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ImageDeleteRequest(BaseModel):
    """Body of DELETE /api/storage. The URL is the one POST returned."""
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True)


class UploadResponse(BaseModel):
    success: bool = True
    url: str = Field(description="Public URL of the stored object")
    message: str = "File uploaded successfully"

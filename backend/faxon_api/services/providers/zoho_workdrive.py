"""
Faxon Portal API — Zoho WorkDrive Client
=========================================

What:  Removes uploaded documents from Zoho WorkDrive.
How:   WorkDrive deletes are status changes on the file resource:

    PATCH {api}/files/{file_id}
    {"data": {"attributes": {"status": "51"}, "type": "files"}}

    Status 51 moves the file to trash, where WorkDrive keeps it for its
    retention period; nothing here issues the permanent delete (61).

Who:   The document delete route schedules `delete_file` as a background task
       after the database transaction commits.
"""

import logging
import re
from typing import Optional

import httpx

from faxon_api.config import settings
from faxon_api.exceptions import StorageProviderError

logger = logging.getLogger(__name__)

PROVIDER = "zoho_workdrive"
TRASH_STATUS = "51"

# WorkDrive share/download URLs carry the resource id after "/file/"
_FILE_ID_PATTERN = re.compile(r"/file/([a-zA-Z0-9]+)")


def extract_file_id(url: Optional[str]) -> Optional[str]:
    """
    Pull the WorkDrive resource id out of a stored document URL.

    Only used for rows that predate `documents.provider_file_id`.
    """
    if not url:
        return None
    match = _FILE_ID_PATTERN.search(url)
    return match.group(1) if match else None


class ZohoWorkDrive:
    """Document-management provider for uploaded documents."""

    def __init__(
        self,
        api_base: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = (api_base or settings.zoho_api_base).rstrip("/")
        self.access_token = access_token if access_token is not None else settings.zoho_access_token
        self.timeout = timeout or settings.provider_timeout
        self._transport = transport

    async def delete_file(self, file_id: str) -> None:
        """
        Move a WorkDrive file to trash.

        Raises:
            StorageProviderError: not configured, transport failure or non-2xx
        """
        if not self.access_token:
            raise StorageProviderError(
                message="Document storage is not configured",
                provider=PROVIDER,
                context={"file_id": file_id},
            )

        payload = {"data": {"attributes": {"status": TRASH_STATUS}, "type": "files"}}
        try:
            async with httpx.AsyncClient(
                base_url=self.api_base,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Zoho-oauthtoken {self.access_token}",
                    "Accept": "application/vnd.api+json",
                },
            ) as client:
                resp = await client.patch(f"/files/{file_id}", json=payload)
        except httpx.HTTPError as e:
            raise StorageProviderError(
                message="Failed to delete document from WorkDrive",
                provider=PROVIDER,
                context={"file_id": file_id, "error": str(e)},
            ) from e

        if resp.status_code >= 400:
            raise StorageProviderError(
                message="Failed to delete document from WorkDrive",
                provider=PROVIDER,
                context={"file_id": file_id, "status": resp.status_code, "body": resp.text[:500]},
            )

        logger.info("WorkDrive file %s moved to trash", file_id)


document_storage = ZohoWorkDrive()

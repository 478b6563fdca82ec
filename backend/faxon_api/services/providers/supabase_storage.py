"""
Faxon Portal API — Supabase Storage Client
===========================================

What:  Uploads, addresses and deletes image assets in a Supabase bucket.
How:   Calls the Storage REST API directly with the service-role key:

    Upload:     POST   {url}/storage/v1/object/{bucket}/{path}
    Public URL:        {url}/storage/v1/object/public/{bucket}/{path}
    Delete:     DELETE {url}/storage/v1/object/{bucket}   {"prefixes": [path]}

Who:   AssetService (via the `get_asset_storage` dependency).
"""

import logging
from typing import List, Optional
from urllib.parse import quote, unquote, urlsplit

import httpx

from faxon_api.config import settings
from faxon_api.exceptions import StorageProviderError

logger = logging.getLogger(__name__)

PROVIDER = "supabase"


class SupabaseStorage:
    """Object storage for public image assets."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.supabase_url).rstrip("/")
        self.service_key = service_key if service_key is not None else settings.supabase_service_key
        self.bucket = bucket or settings.supabase_bucket
        self.timeout = timeout or settings.provider_timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self.base_url or not self.service_key:
            raise StorageProviderError(
                message="File storage is not configured",
                provider=PROVIDER,
            )
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/storage/v1",
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.service_key}",
                "apikey": self.service_key,
            },
        )

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path)}"

    async def upload(self, path: str, content: bytes, content_type: str) -> str:
        """
        Store `content` at `path` inside the bucket and return its public URL.

        Raises:
            StorageProviderError: transport failure or non-2xx answer
        """
        try:
            async with self._client() as client:
                resp = await client.post(
                    f"/object/{self.bucket}/{quote(path)}",
                    content=content,
                    headers={
                        "Content-Type": content_type,
                        "Cache-Control": "max-age=3600",
                        "x-upsert": "false",
                    },
                )
        except httpx.HTTPError as e:
            logger.error("Supabase upload of %s failed: %s", path, str(e))
            raise StorageProviderError(
                message="Failed to upload file",
                provider=PROVIDER,
                context={"path": path, "error": str(e)},
            ) from e

        if resp.status_code >= 400:
            logger.error(
                "Supabase rejected upload of %s: %d %s",
                path,
                resp.status_code,
                resp.text[:500],
            )
            raise StorageProviderError(
                message="Failed to upload file",
                provider=PROVIDER,
                context={"path": path, "status": resp.status_code, "body": resp.text[:500]},
            )

        logger.info("Uploaded %s to bucket %s (%d bytes)", path, self.bucket, len(content))
        return self.public_url(path)

    async def delete(self, paths: List[str]) -> None:
        """Remove objects by bucket-relative path."""
        try:
            async with self._client() as client:
                resp = await client.request(
                    "DELETE",
                    f"/object/{self.bucket}",
                    json={"prefixes": paths},
                )
        except httpx.HTTPError as e:
            logger.error("Supabase delete of %s failed: %s", paths, str(e))
            raise StorageProviderError(
                message="Failed to delete file",
                provider=PROVIDER,
                context={"paths": paths, "error": str(e)},
            ) from e

        if resp.status_code >= 400:
            logger.error(
                "Supabase rejected delete of %s: %d %s",
                paths,
                resp.status_code,
                resp.text[:500],
            )
            raise StorageProviderError(
                message="Failed to delete file",
                provider=PROVIDER,
                context={"paths": paths, "status": resp.status_code, "body": resp.text[:500]},
            )

        logger.info("Deleted %d object(s) from bucket %s", len(paths), self.bucket)

    def path_from_url(self, url: str) -> Optional[str]:
        """
        Recover the bucket-relative path from a public object URL.

        Everything after the bucket segment is the path:
            https://x.supabase.co/storage/v1/object/public/faxon-bucket/products/a.jpg
            → "products/a.jpg"

        Returns None when the bucket segment is missing or is the last one.
        """
        parts = urlsplit(url).path.split("/")
        try:
            index = parts.index(self.bucket)
        except ValueError:
            return None
        remainder = [p for p in parts[index + 1:] if p]
        if not remainder:
            return None
        return unquote("/".join(remainder))


asset_storage = SupabaseStorage()

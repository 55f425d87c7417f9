"""Object storage client: upload, remove, public URLs."""

from __future__ import annotations

import logging

import httpx
from taskboard.integrations.errors import BackendError, error_from_response

logger = logging.getLogger(__name__)


class StorageClient:
    """Async client for `/storage/v1/object/...` endpoints."""

    def __init__(self, base_url: str, api_key: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    def _headers(self, access_token: str) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token}",
        }

    async def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        access_token: str,
        content_type: str,
        cache_seconds: int = 3600,
        upsert: bool = False,
    ) -> None:
        """Store `data` under `bucket/path`. Fails if the key exists and upsert is False."""
        headers = {
            **self._headers(access_token),
            "Content-Type": content_type,
            "Cache-Control": f"max-age={cache_seconds}",
            "x-upsert": "true" if upsert else "false",
        }
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    f"{self._base_url}/storage/v1/object/{bucket}/{path}",
                    content=data,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.warning("Upload to %s/%s failed: %s", bucket, path, e)
            raise BackendError(f"Upload failed: {e}") from e

        if resp.status_code >= 400:
            raise error_from_response(resp, fallback="Upload failed")
        logger.info("Uploaded %d bytes to %s/%s", len(data), bucket, path)

    async def remove(self, bucket: str, paths: list[str], *, access_token: str) -> bool:
        """Delete objects. Returns False instead of raising on failure."""
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.request(
                    "DELETE",
                    f"{self._base_url}/storage/v1/object/{bucket}",
                    json={"prefixes": paths},
                    headers=self._headers(access_token),
                )
            if resp.status_code >= 400:
                logger.info("Remove from %s rejected (HTTP %d)", bucket, resp.status_code)
                return False
            return True
        except httpx.HTTPError as e:
            logger.info("Remove from %s failed: %s", bucket, e)
            return False

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{bucket}/{path}"

"""Media storage client for the Cloudinary upload API."""

import asyncio
import hashlib
import time
from functools import lru_cache
from typing import Optional
from urllib.parse import urlparse

import httpx
import structlog

from vidtube.config import get_settings
from vidtube.exceptions import UpstreamError
from vidtube.models.media import MediaAsset

logger = structlog.get_logger(__name__)

RESOURCE_TYPES = {"image", "video", "raw"}


def sign_params(params: dict, api_secret: str) -> str:
    """Compute the Cloudinary request signature.

    Parameters are sorted by key, joined as ``k=v`` pairs with ``&`` and the
    API secret is appended before SHA-1 hashing.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def parse_asset_url(url: str) -> tuple[str, str] | None:
    """Extract (resource_type, public_id) from a delivery URL.

    ``https://res.cloudinary.com/demo/video/upload/v1712/folder/clip.mp4``
    yields ``("video", "folder/clip")``. Returns None for URLs that do not
    follow the delivery layout.
    """
    if not url:
        return None

    parts = [p for p in urlparse(url).path.split("/") if p]
    if "upload" not in parts:
        return None

    idx = parts.index("upload")
    if idx < 1 or parts[idx - 1] not in RESOURCE_TYPES:
        return None

    resource_type = parts[idx - 1]
    rest = parts[idx + 1:]
    if rest and rest[0].startswith("v") and rest[0][1:].isdigit():
        rest = rest[1:]
    if not rest:
        return None

    public_id = "/".join(rest)
    if resource_type != "raw" and "." in rest[-1]:
        public_id = public_id.rsplit(".", 1)[0]
    return resource_type, public_id


class MediaService:
    """Uploads and deletes assets on the media provider."""

    def __init__(self):
        self.settings = get_settings()
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.media_api_timeout)
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _signed(self, params: dict) -> dict:
        params = {**params, "timestamp": int(time.time())}
        params["signature"] = sign_params(params, self.settings.cloudinary_api_secret)
        params["api_key"] = self.settings.cloudinary_api_key
        return params

    async def _post(
        self,
        path: str,
        data: dict,
        files: Optional[dict] = None,
        max_retries: int = 3,
    ) -> dict | None:
        """POST to the provider API with retry on timeouts and 5xx.

        Returns:
            Response JSON or None on failure
        """
        if not self.settings.cloudinary_cloud_name or not self.settings.cloudinary_api_key:
            logger.error("media_credentials_missing")
            return None

        url = f"{self.settings.media_api_base_url}/{self.settings.cloudinary_cloud_name}/{path}"
        client = await self._get_client()
        last_error = None

        for attempt in range(max_retries):
            try:
                response = await client.post(url, data=self._signed(data), files=files)

                if response.status_code >= 500:
                    last_error = f"HTTP {response.status_code}"
                    wait_time = 2 ** attempt
                    logger.warning(
                        "media_api_server_error",
                        status_code=response.status_code,
                        attempt=attempt,
                        wait_seconds=wait_time,
                    )
                    if attempt < max_retries - 1:
                        await asyncio.sleep(wait_time)
                    continue

                if response.status_code >= 400:
                    logger.error(
                        "media_api_client_error",
                        status_code=response.status_code,
                        body=response.text[:500],
                    )
                    return None

                return response.json()

            except httpx.TimeoutException as e:
                last_error = e
                wait_time = 2 ** attempt
                logger.warning(
                    "media_api_timeout",
                    attempt=attempt,
                    wait_seconds=wait_time,
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(wait_time)
                continue

            except httpx.HTTPError as e:
                last_error = e
                logger.error(
                    "media_api_error",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                break

        logger.error(
            "media_api_failed_after_retries",
            max_retries=max_retries,
            last_error=str(last_error) if last_error else None,
        )
        return None

    async def upload(self, data: bytes, filename: str) -> MediaAsset:
        """Upload a file and return its hosted asset.

        Raises:
            UpstreamError: If the provider fails or returns no URL
        """
        result = await self._post(
            "auto/upload",
            data={},
            files={"file": (filename or "upload", data)},
        )

        url = (result or {}).get("secure_url") or (result or {}).get("url")
        if not url:
            raise UpstreamError(f"Error while uploading {filename or 'file'}")

        asset = MediaAsset(
            url=url,
            public_id=result.get("public_id", ""),
            resource_type=result.get("resource_type", "image"),
            duration=result.get("duration"),
        )
        logger.info(
            "media_uploaded",
            public_id=asset.public_id,
            resource_type=asset.resource_type,
            size_bytes=len(data),
        )
        return asset

    async def delete(self, url: str) -> str:
        """Delete the asset behind a delivery URL.

        Returns:
            The provider's result string ("ok" on success)
        """
        parsed = parse_asset_url(url)
        if parsed is None:
            logger.warning("media_delete_unparseable_url", url=url)
            return "invalid url"

        resource_type, public_id = parsed
        result = await self._post(f"{resource_type}/destroy", data={"public_id": public_id})
        outcome = (result or {}).get("result", "error")

        logger.info(
            "media_deleted",
            public_id=public_id,
            resource_type=resource_type,
            result=outcome,
        )
        return outcome


@lru_cache
def get_media_service() -> MediaService:
    """Process-wide media service (shares one HTTP client)."""
    return MediaService()

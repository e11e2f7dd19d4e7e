"""
Avatar hosting.

`MediaUploader` is the port the user service depends on; `CloudinaryUploader` is the
production adapter talking to the Cloudinary upload API over httpx.

Both upload errors are fatal to the calling operation: the service turns any
`MediaUploadError` (including `TransientMediaError`) into an Internal failure and
does not retry.
"""
from dataclasses import dataclass
import hashlib
import logging
import time
from typing import Protocol

import httpx

from intake.config.settings import Settings

logger = logging.getLogger(__name__)


class MediaUploadError(Exception):
    """Permanent upload failure (rejected credentials, bad request, malformed response)."""


class TransientMediaError(MediaUploadError):
    """Upload failed in a way a later retry might fix (timeout, network error, 5xx)."""


@dataclass(frozen=True)
class UploadedMedia:
    url: str
    public_id: str


class MediaUploader(Protocol):
    async def upload(self, content: bytes, filename: str, content_type: str) -> UploadedMedia: ...

    async def destroy(self, public_id: str) -> None: ...


def sign_params(params: dict, api_secret: str) -> str:
    """
    Cloudinary request signature: SHA-1 over `k1=v1&k2=v2...` (keys sorted,
    empty values skipped) with the API secret appended.
    """
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryUploader:
    BASE_URL = "https://api.cloudinary.com/v1_1"

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryUploader":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder=settings.CLOUDINARY_FOLDER,
            timeout=settings.MEDIA_UPLOAD_TIMEOUT,
        )

    def _signed(self, params: dict) -> dict:
        params = {k: v for k, v in params.items() if v not in (None, "")}
        params["timestamp"] = str(int(time.time()))
        params["signature"] = sign_params(params, self.api_secret)
        params["api_key"] = self.api_key
        return params

    async def _post(self, action: str, data: dict, files: dict | None = None) -> dict:
        url = f"{self.BASE_URL}/{self.cloud_name}/image/{action}"
        try:
            if self._client is not None:
                response = await self._client.post(url, data=data, files=files, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, data=data, files=files)
        except httpx.TimeoutException as e:
            raise TransientMediaError("Media host timed out") from e
        except httpx.HTTPError as e:
            raise TransientMediaError("Could not reach media host") from e

        if response.status_code >= 500:
            raise TransientMediaError(f"Media host error (status {response.status_code})")
        if response.status_code >= 400:
            raise MediaUploadError(f"Media host rejected the request (status {response.status_code})")

        try:
            return response.json()
        except ValueError as e:
            raise MediaUploadError("Media host returned a malformed response") from e

    async def upload(self, content: bytes, filename: str, content_type: str) -> UploadedMedia:
        start = time.perf_counter()
        data = self._signed({"folder": self.folder})
        body = await self._post("upload", data, files={"file": (filename, content, content_type)})

        url = body.get("secure_url") or body.get("url")
        public_id = body.get("public_id")
        if not url or not public_id:
            raise MediaUploadError("Media host response is missing the asset URL")

        logger.info(
            "media.upload.success",
            extra={
                "public_id": public_id,
                "bytes": len(content),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return UploadedMedia(url=url, public_id=public_id)

    async def destroy(self, public_id: str) -> None:
        await self._post("destroy", self._signed({"public_id": public_id}))
        logger.info("media.destroy.success", extra={"public_id": public_id})


class UnconfiguredUploader:
    """Used when no media host credentials are set; every upload fails."""

    async def upload(self, content: bytes, filename: str, content_type: str) -> UploadedMedia:
        raise MediaUploadError("Media uploads are not configured")

    async def destroy(self, public_id: str) -> None:
        return None

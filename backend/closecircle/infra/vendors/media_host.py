"""Cloudinary image host client (signed REST uploads)."""
import hashlib
import logging
import time
from typing import Optional

import httpx

from closecircle.domain.common.errors import UpstreamError
from closecircle.domain.media.models import ImageUpload, StoredImage
from closecircle.domain.media.services import MediaHost
from closecircle.settings import settings

logger = logging.getLogger(__name__)

SERVICE = "media host"


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary signature: sha1 of the sorted key=value pairs joined by '&', followed by the secret."""
    to_sign = "&".join(f"{k}={v}" for k, v in sorted(params.items()) if v not in (None, ""))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def _log_http_error(operation: str, url: str, e: Exception) -> None:
    if isinstance(e, httpx.ConnectError):
        logger.error("Media host unreachable at %s (%s)", url, e)
    else:
        logger.error(f"Media host {operation} failed: {e}")


class CloudinaryMediaHost(MediaHost):
    """Client for the Cloudinary upload API."""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.cloud_name = cloud_name or settings.cloudinary_cloud_name
        self.api_key = api_key or settings.cloudinary_api_key
        self.api_secret = api_secret or settings.cloudinary_api_secret
        self.base_url = (base_url or settings.cloudinary_api_base_url).rstrip("/")
        self.transport = transport
        self.timeout = timeout

    def _url(self, action: str) -> str:
        return f"{self.base_url}/{self.cloud_name}/image/{action}"

    def _signed(self, params: dict[str, str]) -> dict[str, str]:
        params = {k: v for k, v in params.items() if v not in (None, "")}
        params["timestamp"] = str(int(time.time()))
        signature = sign_params(params, self.api_secret)
        return {**params, "api_key": self.api_key, "signature": signature}

    async def _post(self, operation: str, url: str, data: dict, files: Optional[dict] = None) -> dict:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise UpstreamError(SERVICE, "not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, data=data, files=files)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            _log_http_error(operation, url, e)
            raise UpstreamError(SERVICE, f"{operation} failed") from e
        except ValueError as e:
            logger.error("Media host %s returned invalid JSON: %s", operation, e)
            raise UpstreamError(SERVICE, f"{operation} returned an invalid response") from e

    async def upload(
        self,
        upload: ImageUpload,
        folder: str,
        public_id: Optional[str] = None,
        transformation: Optional[str] = None,
    ) -> StoredImage:
        """Upload an image into a folder. Returns its secure URL and public id."""
        url = self._url("upload")
        data = self._signed({"folder": folder, "public_id": public_id, "transformation": transformation})
        files = {"file": (upload.filename or "upload", upload.data, upload.content_type)}
        result = await self._post("upload", url, data, files)
        if not result.get("secure_url") or not result.get("public_id"):
            raise UpstreamError(SERVICE, "upload response missing secure_url")
        logger.info("Image uploaded to media host: %s", result["public_id"])
        return StoredImage(
            url=result["secure_url"],
            public_id=result["public_id"],
            width=result.get("width"),
            height=result.get("height"),
        )

    async def delete(self, public_id: str) -> bool:
        """Destroy an image. 'ok' and 'not found' are both non-errors."""
        url = self._url("destroy")
        result = await self._post("delete", url, self._signed({"public_id": public_id}))
        outcome = result.get("result")
        if outcome == "ok":
            logger.info("Image deleted from media host: %s", public_id)
            return True
        if outcome == "not found":
            logger.info("Image already absent from media host: %s", public_id)
            return False
        raise UpstreamError(SERVICE, f"unexpected delete result: {outcome}")

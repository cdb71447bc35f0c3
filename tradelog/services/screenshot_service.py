"""Screenshot uploads to an ImgBB compatible image host."""
from __future__ import annotations

import base64
import logging
from typing import Optional

import httpx

from tradelog.core.config import settings
from tradelog.core.errors import TransportError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
}


class ScreenshotService:
    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client

    @staticmethod
    def validate(content: bytes, content_type: Optional[str]) -> None:
        if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
            raise ValidationError("file", f"unsupported image type {content_type!r}")
        if not content:
            raise ValidationError("file", "is empty")
        if len(content) > settings.IMAGE_UPLOAD_MAX_BYTES:
            raise ValidationError("file", f"exceeds {settings.IMAGE_UPLOAD_MAX_BYTES} bytes")

    async def upload(self, content: bytes, filename: str, content_type: Optional[str]) -> dict:
        """Returns ``url`` (and ``delete_url`` when the host provides one)."""
        self.validate(content, content_type)
        if not settings.IMAGE_HOST_API_KEY:
            raise TransportError("Image host not configured", status_code=503)

        params = {"key": settings.IMAGE_HOST_API_KEY}
        data = {
            "image": base64.b64encode(content).decode("ascii"),
            "name": filename.rsplit(".", 1)[0] if filename else "screenshot",
        }
        try:
            if self._client is not None:
                resp = await self._client.post(settings.IMAGE_HOST_URL, params=params, data=data)
            else:
                async with httpx.AsyncClient(timeout=settings.IMAGE_HOST_TIMEOUT_SECONDS) as client:
                    resp = await client.post(settings.IMAGE_HOST_URL, params=params, data=data)
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Screenshot upload failed: {e}")
            raise TransportError("Screenshot upload failed") from e

        url = (payload.get("data") or {}).get("url") if isinstance(payload, dict) else None
        if not url:
            logger.error(f"Image host returned no url: {payload}")
            raise TransportError("Image host returned no URL")

        logger.info(f"Screenshot uploaded: {url}")
        return {"url": url, "delete_url": payload["data"].get("delete_url")}

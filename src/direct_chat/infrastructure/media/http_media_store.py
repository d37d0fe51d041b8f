"""Image upload to the external media host."""
from __future__ import annotations

import logging

import httpx

from direct_chat.application.exceptions import MediaUploadError

logger = logging.getLogger(__name__)


class HttpMediaStore:
    """Implements application.ports.media.MediaStore against an upload endpoint.

    The host accepts ``{"file": <data URI>}`` and answers with the stored
    asset, whose ``secure_url`` (or ``url``) is kept on the message.
    """

    def __init__(
        self,
        upload_url: str,
        api_key: str = "",
        *,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._upload_url = upload_url
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def upload(self, data: str) -> str:
        if not self._upload_url:
            raise MediaUploadError("Image uploads are not configured")

        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(self._upload_url, json={"file": data}, headers=headers)
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Media upload failed: %s", exc)
            raise MediaUploadError("Image upload failed") from exc

        url = (body.get("secure_url") or body.get("url")) if isinstance(body, dict) else None
        if not url:
            raise MediaUploadError("Media host returned no URL")
        return str(url)

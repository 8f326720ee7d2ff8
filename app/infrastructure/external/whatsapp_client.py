# app/infrastructure/external/whatsapp_client.py
"""
Outbound WhatsApp Cloud API sender.

Both ``send_text`` and ``send_file`` report success as a bool instead of
raising: a failed delivery is logged and must never abort the conversation
cycle that produced it.
"""

import mimetypes
from pathlib import Path
from typing import Protocol

import httpx
from loguru import logger

GRAPH_BASE = "https://graph.facebook.com"
GRAPH_VERSION = "v20.0"


class MessagingGateway(Protocol):
    async def send_text(self, conversation_id: str, text: str) -> bool: ...

    async def send_file(
        self,
        conversation_id: str,
        file_path: str | Path,
        file_name: str,
        caption: str = "",
    ) -> bool: ...


class WhatsAppClient:
    def __init__(
        self,
        access_token: str,
        phone_number_id: str,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.timeout = timeout
        self._transport = transport

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport)

    def _headers(self) -> dict:
        if not self.access_token:
            raise RuntimeError("WHATSAPP_ACCESS_TOKEN is not set")
        return {"Authorization": f"Bearer {self.access_token}"}

    def _url(self, path: str) -> str:
        if not self.phone_number_id:
            raise RuntimeError("WHATSAPP_PHONE_NUMBER_ID is not set")
        return f"{GRAPH_BASE}/{GRAPH_VERSION}/{self.phone_number_id}/{path}"

    async def send_text(self, conversation_id: str, text: str) -> bool:
        payload = {
            "messaging_product": "whatsapp",
            "to": conversation_id,
            "type": "text",
            "text": {"body": text},
        }
        try:
            async with self._client() as client:
                r = await client.post(self._url("messages"), headers=self._headers(), json=payload)
                r.raise_for_status()
        except (httpx.HTTPError, RuntimeError) as e:
            logger.error("WA text send to {} failed: {}", conversation_id, e)
            return False

        logger.info("WA → text sent to {}", conversation_id)
        return True

    async def _upload_media(self, file_path: Path, file_name: str, mime_type: str) -> str:
        """POST /{PHONE_NUMBER_ID}/media, returns the media_id."""
        files = {"file": (file_name, file_path.read_bytes(), mime_type)}
        data = {"messaging_product": "whatsapp", "type": mime_type}

        async with self._client(timeout=60) as client:
            r = await client.post(self._url("media"), headers=self._headers(), data=data, files=files)
            r.raise_for_status()
            media_id = r.json().get("id")
        if not media_id:
            raise RuntimeError(f"WhatsApp media upload returned no id for {file_name}")
        return media_id

    async def send_file(
        self,
        conversation_id: str,
        file_path: str | Path,
        file_name: str,
        caption: str = "",
    ) -> bool:
        path = Path(file_path)
        mime_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        kind = "image" if mime_type.startswith("image/") else "document"

        try:
            media_id = await self._upload_media(path, file_name, mime_type)
            body = {"id": media_id}
            if kind == "document":
                body["filename"] = file_name
            if caption:
                body["caption"] = caption
            payload = {
                "messaging_product": "whatsapp",
                "to": conversation_id,
                "type": kind,
                kind: body,
            }
            async with self._client() as client:
                r = await client.post(self._url("messages"), headers=self._headers(), json=payload)
                r.raise_for_status()
        except (httpx.HTTPError, OSError, RuntimeError, ValueError) as e:
            logger.error("WA {} send of {} to {} failed: {}", kind, file_name, conversation_id, e)
            return False

        logger.info("WA → {} {} sent to {}", kind, file_name, conversation_id)
        return True

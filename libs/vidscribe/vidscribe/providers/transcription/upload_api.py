"""Transcription via the upload API (`POST /videos/{id}/transcription`)."""

from __future__ import annotations

import logging

import httpx

from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import TranscriptionError
from vidscribe.providers.transcription._utils import extract_text, translate_http_error
from vidscribe.providers.transcription.base import TranscriptionService

logger = logging.getLogger(__name__)


class UploadApiTranscriptionService(TranscriptionService):
    """Asks the upload API to transcribe a previously uploaded file.

    Request body is `{"prompt": ...}`; the response carries `{"transcription": ...}`.
    """

    name = "upload_api"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def transcribe(self, artifact_id: str, prompt: str | None = None) -> str:
        client = await self._get_client()
        try:
            response = await client.post(
                f"/videos/{artifact_id}/transcription",
                json={"prompt": prompt or ""},
            )
            response.raise_for_status()
            text = extract_text(response.json(), "transcription")
        except httpx.HTTPError as exc:
            raise translate_http_error(self.name, exc) from exc
        except ValueError as exc:
            raise TranscriptionError(
                ErrorCode.REJECTED, f"malformed transcription response: {exc}", provider=self.name
            ) from exc

        logger.info("transcription received (artifact_id=%s, chars=%d)", artifact_id, len(text))
        return text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

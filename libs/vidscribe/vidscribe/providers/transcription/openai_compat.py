"""OpenAI-compatible `/audio/transcriptions` provider."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

import httpx

from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import TranscriptionError
from vidscribe.providers.transcription._utils import extract_text, translate_http_error
from vidscribe.providers.transcription.base import TranscriptionService
from vidscribe.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

_MIME_BY_SUFFIX = {
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
    ".opus": "audio/ogg",
    ".wav": "audio/wav",
    ".flac": "audio/flac",
}


class OpenAICompatTranscriptionService(TranscriptionService):
    """Transcribes via an OpenAI-compatible API (whisper, vLLM, ...).

    The artifact bytes are read back from the Artifact Store and uploaded
    together with the prompt, which the API treats as a vocabulary hint.
    """

    name = "openai_compat"

    def __init__(
        self,
        store: ArtifactStore,
        base_url: str,
        *,
        model: str = "whisper-1",
        api_key: str = "",
        language: str | None = None,
        timeout: float = 300.0,
        max_concurrent: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the provider.

        Args:
            store: Store the artifact ids refer to (must support `load`).
            base_url: API base URL (e.g., http://localhost:8000/v1)
            model: Model name
            api_key: API key for authentication
            language: Optional language hint
            timeout: Request timeout in seconds
            max_concurrent: Connection pool size
        """
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.language = language
        self.timeout = timeout
        self.max_concurrent = max(1, int(max_concurrent))
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create connection-pooled HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(
                    max_connections=self.max_concurrent,
                    max_keepalive_connections=max(1, self.max_concurrent // 2),
                ),
                transport=self._transport,
            )
        return self._client

    async def transcribe(self, artifact_id: str, prompt: str | None = None) -> str:
        try:
            audio = await self.store.load(artifact_id)
        except (FileNotFoundError, NotImplementedError) as exc:
            raise TranscriptionError(
                ErrorCode.REJECTED, f"artifact not readable: {artifact_id} ({exc})", provider=self.name
            ) from exc

        filename = PurePosixPath(str(artifact_id)).name or "audio.mp3"
        mime_type = _MIME_BY_SUFFIX.get(PurePosixPath(filename).suffix.lower(), "application/octet-stream")
        data: dict[str, str] = {"model": self.model, "response_format": "json"}
        if prompt:
            data["prompt"] = prompt
        if self.language:
            data["language"] = self.language

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        client = await self._get_client()
        try:
            response = await client.post(
                f"{self.base_url}/audio/transcriptions",
                headers=headers,
                files={"file": (filename, audio, mime_type)},
                data=data,
            )
            response.raise_for_status()
            text = extract_text(response.json(), "text")
        except httpx.HTTPError as exc:
            raise translate_http_error(self.name, exc) from exc
        except ValueError as exc:
            raise TranscriptionError(
                ErrorCode.REJECTED, f"malformed transcription response: {exc}", provider=self.name
            ) from exc

        logger.info("transcription received (artifact_id=%s, chars=%d)", artifact_id, len(text))
        return text

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

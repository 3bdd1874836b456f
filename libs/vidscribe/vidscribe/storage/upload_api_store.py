"""Artifact store backed by the upload API (`POST /videos`)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import StorageError
from vidscribe.models.artifact import AudioArtifact
from vidscribe.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

_QUOTA_STATUS = {413, 507}


def _extract_video_id(payload: Any) -> str:
    """Read `video.id` from the upload response."""
    video = payload.get("video") if isinstance(payload, dict) else None
    video_id = video.get("id") if isinstance(video, dict) else None
    if video_id is None or not str(video_id).strip():
        raise ValueError("response has no video.id")
    return str(video_id).strip()


class UploadApiArtifactStore(ArtifactStore):
    """Uploads the audio file as multipart field `file` and returns the server-side id.

    The server owns the bytes afterwards; `load` is not supported.
    """

    name = "upload_api"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        max_bytes: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(max_bytes=max_bytes)
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

    async def save(self, submission_id: str, artifact: AudioArtifact) -> str:
        self._check_quota(artifact)
        client = await self._get_client()
        files = {"file": (artifact.filename, artifact.data, artifact.mime_type)}

        try:
            response = await client.post("/videos", files=files)
            response.raise_for_status()
            video_id = _extract_video_id(response.json())
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            code = ErrorCode.QUOTA_EXCEEDED if status in _QUOTA_STATUS else ErrorCode.UNAVAILABLE
            raise StorageError(code, f"upload rejected (status={status})", provider=self.name) from exc
        except httpx.HTTPError as exc:
            raise StorageError(ErrorCode.UNAVAILABLE, str(exc) or type(exc).__name__, provider=self.name) from exc
        except ValueError as exc:
            raise StorageError(
                ErrorCode.UNAVAILABLE, f"malformed upload response: {exc}", provider=self.name
            ) from exc

        logger.info("artifact uploaded (submission_id=%s, video_id=%s)", submission_id, video_id)
        return video_id

    async def load(self, artifact_id: str) -> bytes:
        raise NotImplementedError("upload_api store does not serve artifact bytes back")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

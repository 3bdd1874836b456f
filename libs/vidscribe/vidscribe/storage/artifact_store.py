"""Artifact store interface and local implementation."""

from __future__ import annotations

import asyncio
import errno
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import StorageError
from vidscribe.models.artifact import AudioArtifact

logger = logging.getLogger(__name__)

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class ArtifactStore(ABC):
    """Persists audio artifacts and hands back an opaque identifier."""

    name: str = "artifact_store"

    def __init__(self, *, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes

    @abstractmethod
    async def save(self, submission_id: str, artifact: AudioArtifact) -> str:
        """Persist artifact bytes and return the artifact identifier.

        Raises:
            StorageError: Unavailable or QuotaExceeded.
        """

    @abstractmethod
    async def load(self, artifact_id: str) -> bytes:
        """Load artifact bytes by identifier."""

    async def close(self) -> None:  # pragma: no cover
        return None

    def _check_quota(self, artifact: AudioArtifact) -> None:
        if self.max_bytes is not None and artifact.size_bytes > int(self.max_bytes):
            raise StorageError(
                ErrorCode.QUOTA_EXCEEDED,
                f"artifact is {artifact.size_bytes} bytes (limit {self.max_bytes})",
                provider=self.name,
            )


class LocalArtifactStore(ArtifactStore):
    """Local filesystem artifact store for development."""

    name = "local"

    def __init__(self, base_dir: str, *, max_bytes: int | None = None) -> None:
        super().__init__(max_bytes=max_bytes)
        self.base_dir = Path(base_dir)

    @staticmethod
    def _key(submission_id: str, artifact: AudioArtifact) -> str:
        safe_id = str(submission_id).strip().replace("/", "_")
        return f"submissions/{safe_id}/{artifact.filename}"

    def _path(self, artifact_id: str) -> Path:
        root = self.base_dir.resolve()
        path = (root / str(artifact_id).strip()).resolve()
        if root not in path.parents:
            raise FileNotFoundError(f"artifact id outside store: {artifact_id}")
        return path

    async def save(self, submission_id: str, artifact: AudioArtifact) -> str:
        self._check_quota(artifact)
        key = self._key(submission_id, artifact)
        path = self._path(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(artifact.data)

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            code = ErrorCode.QUOTA_EXCEEDED if exc.errno in _QUOTA_ERRNOS else ErrorCode.UNAVAILABLE
            raise StorageError(code, f"write failed ({path}): {exc}", provider=self.name) from exc
        logger.debug("local artifact saved (path=%s, bytes=%d)", path, artifact.size_bytes)
        return key

    async def load(self, artifact_id: str) -> bytes:
        return await asyncio.to_thread(self._path(artifact_id).read_bytes)

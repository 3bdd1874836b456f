"""Transcription Service base class."""

from abc import ABC, abstractmethod


class TranscriptionService(ABC):
    """Abstract base class for transcription services."""

    name: str = "transcription"

    @abstractmethod
    async def transcribe(self, artifact_id: str, prompt: str | None = None) -> str:
        """Transcribe a stored audio artifact.

        Args:
            artifact_id: Identifier returned by the Artifact Store.
            prompt: Optional keyword/vocabulary hint (not an instruction).

        Returns:
            Transcript text.

        Raises:
            TranscriptionError: Rejected or Timeout.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        return None

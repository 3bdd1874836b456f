"""Transcoder provider abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

from vidscribe.models.artifact import AudioArtifact, TranscodeOptions


class ProgressReporter(Protocol):
    async def report(self, progress: int, message: str) -> None: ...


class Transcoder(ABC):
    """Turns a video container into one compressed audio stream."""

    @abstractmethod
    async def transcode(
        self,
        video_bytes: bytes,
        options: TranscodeOptions,
        *,
        progress_reporter: ProgressReporter | None = None,
    ) -> AudioArtifact:
        """Transcode `video_bytes` into an audio artifact.

        Args:
            video_bytes: Raw container bytes (non-empty).
            options: Target codec, bitrate and stream selection.
            progress_reporter: Receives a non-decreasing 0-100 percentage.

        Returns:
            A self-contained AudioArtifact.

        Raises:
            TranscodeError: UnsupportedContainer, NoAudioStream, EncodeFailure or Cancelled.
        """
        ...

    async def close(self) -> None:  # pragma: no cover
        return None

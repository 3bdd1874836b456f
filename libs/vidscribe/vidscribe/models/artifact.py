"""Audio artifact model."""

from __future__ import annotations

from dataclasses import dataclass

from vidscribe.config import TranscodeConfig


@dataclass(frozen=True)
class TranscodeOptions:
    codec: str = "libmp3lame"
    bitrate: str = "20k"
    stream_selector: str = "0:a:0"
    container_format: str = "mp3"
    mime_type: str = "audio/mpeg"
    file_extension: str = "mp3"

    @classmethod
    def from_config(cls, cfg: TranscodeConfig) -> "TranscodeOptions":
        return cls(
            codec=str(cfg.codec),
            bitrate=str(cfg.bitrate),
            stream_selector=str(cfg.stream_selector),
            container_format=str(cfg.container_format),
            mime_type=str(cfg.mime_type),
            file_extension=str(cfg.file_extension).lstrip("."),
        )


@dataclass(frozen=True)
class AudioArtifact:
    data: bytes
    mime_type: str
    file_extension: str
    duration_s: float | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def filename(self) -> str:
        return f"audio.{self.file_extension}"

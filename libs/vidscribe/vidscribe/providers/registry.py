"""Provider factory and registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vidscribe.exceptions import ConfigurationError
from vidscribe.providers.transcoder.base import Transcoder
from vidscribe.providers.transcription.base import TranscriptionService
from vidscribe.storage.artifact_store import ArtifactStore


def get_transcoder(config: Mapping[str, Any], *, work_dir: str | None = None) -> Transcoder:
    """Get the codec engine adapter based on configuration."""
    from vidscribe.providers.transcoder.ffmpeg import FFmpegTranscoder

    timeout = config.get("timeout_s")
    return FFmpegTranscoder(
        ffmpeg_bin=str(config.get("ffmpeg_bin") or "ffmpeg"),
        ffprobe_bin=str(config.get("ffprobe_bin") or "ffprobe"),
        work_dir=work_dir,
        timeout_s=float(timeout) if timeout is not None else None,
    )


def get_transcription_service(
    config: Mapping[str, Any], *, store: ArtifactStore
) -> TranscriptionService:
    """Get Transcription Service based on configuration."""
    provider_type = str(config.get("provider") or "upload_api").strip().lower()

    match provider_type:
        case "upload_api":
            from vidscribe.providers.transcription.upload_api import UploadApiTranscriptionService

            return UploadApiTranscriptionService(
                base_url=str(config["base_url"]),
                timeout=float(config.get("timeout", 300.0)),
            )
        case "openai_compat" | "openai":
            from vidscribe.providers.transcription.openai_compat import (
                OpenAICompatTranscriptionService,
            )

            return OpenAICompatTranscriptionService(
                store,
                base_url=str(config["base_url"]),
                model=str(config.get("model") or "whisper-1"),
                api_key=str(config.get("api_key") or ""),
                language=config.get("language"),
                timeout=float(config.get("timeout", 300.0)),
                max_concurrent=int(config.get("max_concurrent", 10)),
            )
        case _:
            raise ConfigurationError(f"Unknown transcription provider: {provider_type}")

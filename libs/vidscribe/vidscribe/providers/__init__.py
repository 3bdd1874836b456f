"""Provider abstractions for external services."""

from vidscribe.providers.registry import get_transcoder, get_transcription_service

__all__ = ["get_transcoder", "get_transcription_service"]

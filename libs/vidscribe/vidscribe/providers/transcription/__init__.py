"""Transcription Service implementations."""

from vidscribe.providers.transcription.base import TranscriptionService
from vidscribe.providers.transcription.openai_compat import OpenAICompatTranscriptionService
from vidscribe.providers.transcription.upload_api import UploadApiTranscriptionService

__all__ = [
    "OpenAICompatTranscriptionService",
    "TranscriptionService",
    "UploadApiTranscriptionService",
]

"""Transcoder provider implementations."""

from vidscribe.providers.transcoder.base import ProgressReporter, Transcoder
from vidscribe.providers.transcoder.ffmpeg import FFmpegTranscoder, MediaProbe

__all__ = ["FFmpegTranscoder", "MediaProbe", "ProgressReporter", "Transcoder"]

"""Canonical error codes surfaced to API callers."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "Unknown"

    # Transcoder
    UNSUPPORTED_CONTAINER = "UnsupportedContainer"
    NO_AUDIO_STREAM = "NoAudioStream"
    ENCODE_FAILURE = "EncodeFailure"
    CANCELLED = "Cancelled"

    # Artifact Store
    UNAVAILABLE = "Unavailable"
    QUOTA_EXCEEDED = "QuotaExceeded"

    # Transcription Service
    REJECTED = "Rejected"
    TIMEOUT = "Timeout"

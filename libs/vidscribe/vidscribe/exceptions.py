"""vidscribe exception hierarchy."""

from __future__ import annotations

from vidscribe.error_codes import ErrorCode


class VidscribeError(Exception):
    """Base error for vidscribe."""


class ConfigurationError(VidscribeError):
    """Raised when configuration or inputs are invalid."""


class ProviderError(VidscribeError):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code


class TranscodeError(ProviderError):
    """Raised by the transcoder (UnsupportedContainer/NoAudioStream/EncodeFailure/Cancelled)."""

    def __init__(self, error_code: ErrorCode, message: str, *, provider: str = "ffmpeg") -> None:
        super().__init__(provider, message, error_code=error_code)


class StorageError(ProviderError):
    """Raised by an Artifact Store (Unavailable/QuotaExceeded)."""

    def __init__(self, error_code: ErrorCode, message: str, *, provider: str = "artifact_store") -> None:
        super().__init__(provider, message, error_code=error_code)


class TranscriptionError(ProviderError):
    """Raised by a Transcription Service (Rejected/Timeout)."""

    def __init__(self, error_code: ErrorCode, message: str, *, provider: str = "transcription") -> None:
        super().__init__(provider, message, error_code=error_code)


class SubmissionNotFoundError(VidscribeError):
    """Raised when a submission id is unknown."""

    def __init__(self, submission_id: str) -> None:
        super().__init__(f"submission not found: {submission_id}")
        self.submission_id = submission_id


class InvalidTransitionError(VidscribeError):
    """Raised when a stage change would break the submission state machine."""

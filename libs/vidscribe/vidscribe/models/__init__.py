"""Core data models for vidscribe."""

from vidscribe.models.artifact import AudioArtifact, TranscodeOptions
from vidscribe.models.submission import (
    STAGE_INDEX,
    STAGE_ORDER,
    EventKind,
    Stage,
    StageChange,
    Submission,
    SubmissionError,
    SubmissionEvent,
)

__all__ = [
    "AudioArtifact",
    "EventKind",
    "STAGE_INDEX",
    "STAGE_ORDER",
    "Stage",
    "StageChange",
    "Submission",
    "SubmissionError",
    "SubmissionEvent",
    "TranscodeOptions",
]

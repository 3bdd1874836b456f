"""Submission model (one video-to-transcript request)."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Stage(str, Enum):
    RECEIVED = "received"
    TRANSCODING = "transcoding"
    TRANSCODED = "transcoded"
    STORED = "stored"
    TRANSCRIBING = "transcribing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.DONE, Stage.FAILED)


STAGE_ORDER: list[Stage] = [
    Stage.RECEIVED,
    Stage.TRANSCODING,
    Stage.TRANSCODED,
    Stage.STORED,
    Stage.TRANSCRIBING,
    Stage.DONE,
]

STAGE_INDEX: dict[Stage, int] = {s: i for i, s in enumerate(STAGE_ORDER)}


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _dt_to_iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _dt_from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class SubmissionError:
    """Structured failure: the stage the submission was in, the kind, the upstream message."""

    stage: Stage
    kind: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage.value, "kind": self.kind, "message": self.message}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubmissionError":
        return cls(
            stage=Stage(str(data.get("stage") or Stage.RECEIVED.value)),
            kind=str(data.get("kind") or ""),
            message=str(data.get("message") or ""),
        )


@dataclass(frozen=True)
class StageChange:
    stage: Stage
    at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage.value, "at": _dt_to_iso(self.at)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StageChange":
        return cls(
            stage=Stage(str(data.get("stage") or Stage.RECEIVED.value)),
            at=_dt_from_iso(data.get("at")) or _utcnow(),
        )


@dataclass
class Submission:
    id: str
    prompt: str | None = None
    stage: Stage = Stage.RECEIVED
    artifact_id: str | None = None
    artifact_media_type: str | None = None
    artifact_size_bytes: int | None = None
    transcript_text: str | None = None
    error: SubmissionError | None = None
    progress: int = 0
    progress_message: str | None = None
    version: int = 0
    history: list[StageChange] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.stage.is_terminal

    @property
    def failed_stage(self) -> Stage | None:
        return self.error.stage if self.error is not None else None

    def touch(self) -> None:
        self.updated_at = _utcnow()

    def snapshot(self) -> "Submission":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "stage": self.stage.value,
            "artifact_id": self.artifact_id,
            "artifact_media_type": self.artifact_media_type,
            "artifact_size_bytes": self.artifact_size_bytes,
            "transcript_text": self.transcript_text,
            "error": self.error.to_dict() if self.error is not None else None,
            "progress": int(self.progress),
            "progress_message": self.progress_message,
            "version": int(self.version),
            "history": [h.to_dict() for h in self.history],
            "created_at": _dt_to_iso(self.created_at),
            "updated_at": _dt_to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Submission":
        error_raw = data.get("error")
        size = data.get("artifact_size_bytes")
        return cls(
            id=str(data.get("id", "")),
            prompt=data.get("prompt"),
            stage=Stage(str(data.get("stage") or Stage.RECEIVED.value)),
            artifact_id=data.get("artifact_id"),
            artifact_media_type=data.get("artifact_media_type"),
            artifact_size_bytes=int(size) if isinstance(size, int) else None,
            transcript_text=data.get("transcript_text"),
            error=SubmissionError.from_dict(error_raw) if isinstance(error_raw, dict) else None,
            progress=int(data.get("progress") or 0),
            progress_message=data.get("progress_message"),
            version=int(data.get("version") or 0),
            history=[
                StageChange.from_dict(x) for x in list(data.get("history") or []) if isinstance(x, dict)
            ],
            created_at=_dt_from_iso(data.get("created_at")) or _utcnow(),
            updated_at=_dt_from_iso(data.get("updated_at")) or _utcnow(),
        )


class EventKind(str, Enum):
    SNAPSHOT = "snapshot"
    STAGE = "stage"
    PROGRESS = "progress"


@dataclass(frozen=True)
class SubmissionEvent:
    kind: EventKind
    submission: Submission

    @property
    def stage(self) -> Stage:
        return self.submission.stage

    @property
    def version(self) -> int:
        return int(self.submission.version)

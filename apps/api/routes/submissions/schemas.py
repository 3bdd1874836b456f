from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SubmitResponse(BaseModel):
    id: str
    stage: str


class SubmissionErrorResponse(BaseModel):
    stage: str
    kind: str
    message: str


class StageChangeResponse(BaseModel):
    stage: str
    at: datetime


class SubmissionResponse(BaseModel):
    id: str
    stage: str
    prompt: str | None = None
    progress: int = 0
    progress_message: str | None = None
    artifact_id: str | None = None
    artifact_media_type: str | None = None
    artifact_size_bytes: int | None = None
    transcript_text: str | None = None
    error: SubmissionErrorResponse | None = None
    history: list[StageChangeResponse] = []
    created_at: datetime
    updated_at: datetime

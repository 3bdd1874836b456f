from __future__ import annotations

import json

from fastapi import HTTPException, Request

from vidscribe.config import Settings
from vidscribe.models.submission import Submission
from vidscribe.pipeline.ingest import IngestPipeline

from .schemas import StageChangeResponse, SubmissionErrorResponse, SubmissionResponse


def pipeline(request: Request) -> IngestPipeline:
    obj = getattr(request.app.state, "pipeline", None)
    if obj is None:
        raise HTTPException(status_code=500, detail="pipeline not initialized")
    return obj


def settings(request: Request) -> Settings:
    obj = getattr(request.app.state, "settings", None)
    if obj is None:
        raise HTTPException(status_code=500, detail="settings not initialized")
    return obj


def to_response(submission: Submission) -> SubmissionResponse:
    error = None
    if submission.error is not None:
        error = SubmissionErrorResponse(
            stage=submission.error.stage.value,
            kind=submission.error.kind,
            message=submission.error.message,
        )
    return SubmissionResponse(
        id=submission.id,
        stage=submission.stage.value,
        prompt=submission.prompt,
        progress=int(submission.progress),
        progress_message=submission.progress_message,
        artifact_id=submission.artifact_id,
        artifact_media_type=submission.artifact_media_type,
        artifact_size_bytes=submission.artifact_size_bytes,
        transcript_text=submission.transcript_text,
        error=error,
        history=[StageChangeResponse(stage=h.stage.value, at=h.at) for h in submission.history],
        created_at=submission.created_at,
        updated_at=submission.updated_at,
    )


def to_event_data(submission: Submission) -> str:
    return json.dumps(to_response(submission).model_dump(mode="json"), ensure_ascii=False)

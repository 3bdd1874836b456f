from __future__ import annotations

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from vidscribe.exceptions import ConfigurationError, SubmissionNotFoundError

from ._deps import pipeline, settings, to_response
from .schemas import SubmissionResponse, SubmitResponse

router = APIRouter()

_CHUNK_SIZE = 8 * 1024 * 1024


async def _read_upload(upload: UploadFile, *, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    read = 0
    while True:
        chunk = await upload.read(_CHUNK_SIZE)
        if not chunk:
            break
        read += len(chunk)
        if read > max_bytes:
            raise HTTPException(status_code=413, detail="file too large")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("", response_model=SubmitResponse, status_code=202)
async def submit(
    request: Request,
    file: UploadFile = File(...),
    prompt: str | None = Form(default=None),
) -> SubmitResponse:
    cfg = settings(request)
    try:
        data = await _read_upload(file, max_bytes=int(cfg.upload_max_bytes))
    finally:
        await file.close()
    if not data:
        raise HTTPException(status_code=400, detail="empty upload")

    svc = pipeline(request)
    try:
        submission_id = await svc.submit(data, prompt)
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    snapshot = await svc.get_status(submission_id)
    return SubmitResponse(id=submission_id, stage=snapshot.stage.value)


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(request: Request, submission_id: str) -> SubmissionResponse:
    try:
        snapshot = await pipeline(request).get_status(submission_id)
    except SubmissionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="submission not found") from exc
    return to_response(snapshot)


@router.post("/{submission_id}/cancel", response_model=SubmissionResponse)
async def cancel_submission(request: Request, submission_id: str) -> SubmissionResponse:
    svc = pipeline(request)
    try:
        cancelled = await svc.cancel(submission_id)
        snapshot = await svc.get_status(submission_id)
    except SubmissionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="submission not found") from exc
    if not cancelled:
        raise HTTPException(status_code=409, detail=f"submission is {snapshot.stage.value}")
    return to_response(snapshot)

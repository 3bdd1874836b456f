"""Health check routes."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from vidscribe.pipeline.ingest import IngestPipeline

router = APIRouter(tags=["health"])


class TranscoderHealth(BaseModel):
    status: str  # "ok" | "busy"
    ffmpeg_bin: str | None = None
    ffprobe_bin: str | None = None
    active: int
    waiting: int
    max_concurrent: int
    in_flight_submissions: int


@router.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/health/transcoder", response_model=TranscoderHealth)
async def transcoder_health(request: Request) -> TranscoderHealth:
    pipeline: IngestPipeline | None = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=500, detail="pipeline not initialized")

    state = pipeline.limiter.snapshot()
    return TranscoderHealth(
        status="busy" if state.active >= state.max and state.waiting > 0 else "ok",
        ffmpeg_bin=getattr(pipeline.transcoder, "ffmpeg_bin", None),
        ffprobe_bin=getattr(pipeline.transcoder, "ffprobe_bin", None),
        active=state.active,
        waiting=state.waiting,
        max_concurrent=state.max,
        in_flight_submissions=len(pipeline.in_flight()),
    )

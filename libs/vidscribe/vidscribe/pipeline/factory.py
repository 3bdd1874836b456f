"""Pipeline factories."""

from __future__ import annotations

from pathlib import Path

from vidscribe.config import Settings
from vidscribe.pipeline.concurrency import create_transcode_limiter
from vidscribe.pipeline.ingest import IngestPipeline
from vidscribe.pipeline.tracker import JobStatusTracker
from vidscribe.providers import get_transcoder, get_transcription_service
from vidscribe.services import SubmissionStore, get_submission_store
from vidscribe.storage import get_artifact_store


def create_ingest_pipeline(
    settings: Settings,
    *,
    submission_store: SubmissionStore | None = None,
) -> IngestPipeline:
    """Wire the configured transcoder, Artifact Store and Transcription Service."""
    store = get_artifact_store(settings)
    submissions = submission_store or get_submission_store(settings)
    return IngestPipeline(
        settings,
        store,
        transcoder=get_transcoder(
            settings.transcode.model_dump(),
            work_dir=str(Path(settings.data_dir) / "tmp"),
        ),
        transcription=get_transcription_service(settings.transcription.model_dump(), store=store),
        submission_store=submissions,
        tracker=JobStatusTracker(submissions),
        limiter=create_transcode_limiter(settings),
    )

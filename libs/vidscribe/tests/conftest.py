from __future__ import annotations

from collections.abc import Callable

import pytest

from vidscribe.config import Settings
from vidscribe.pipeline.concurrency import TranscodeLimiter
from vidscribe.pipeline.ingest import IngestPipeline
from vidscribe.providers.transcoder.base import Transcoder
from vidscribe.providers.transcription.base import TranscriptionService
from vidscribe.services.submission_store import InMemorySubmissionStore, SubmissionStore
from vidscribe.storage.artifact_store import ArtifactStore
from vidscribe_fakes import FakeArtifactStore, FakeTranscoder, FakeTranscription


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        artifact_store_backend="local",
        data_dir=str(tmp_path / "data"),
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture()
def make_pipeline(settings: Settings) -> Callable[..., IngestPipeline]:
    def _make(
        *,
        transcoder: Transcoder | None = None,
        store: ArtifactStore | None = None,
        transcription: TranscriptionService | None = None,
        max_concurrent: int = 2,
        pipeline_settings: Settings | None = None,
        submission_store: SubmissionStore | None = None,
    ) -> IngestPipeline:
        return IngestPipeline(
            pipeline_settings or settings,
            store or FakeArtifactStore(),
            transcoder=transcoder or FakeTranscoder(),
            transcription=transcription or FakeTranscription(),
            submission_store=submission_store or InMemorySubmissionStore(),
            limiter=TranscodeLimiter(max_concurrent),
        )

    return _make

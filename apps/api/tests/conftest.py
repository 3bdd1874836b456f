from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api_fakes import FakeArtifactStore, FakeTranscoder, FakeTranscription
from vidscribe.config import Settings
from vidscribe.pipeline.concurrency import TranscodeLimiter
from vidscribe.pipeline.ingest import IngestPipeline
from vidscribe.services.submission_store import InMemorySubmissionStore

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        artifact_store_backend="local",
        data_dir=str(tmp_path / "data"),
        log_dir=str(tmp_path / "logs"),
        upload_max_bytes=1024,
    )


@pytest.fixture()
def store() -> FakeArtifactStore:
    return FakeArtifactStore()


@pytest.fixture()
def transcription() -> FakeTranscription:
    return FakeTranscription()


@pytest.fixture()
def app(settings: Settings, store: FakeArtifactStore, transcription: FakeTranscription) -> FastAPI:
    from routes.health import router as health_router
    from routes.submissions import router as submissions_router

    test_app = FastAPI()
    test_app.state.settings = settings
    test_app.state.pipeline = IngestPipeline(
        settings,
        store,
        transcoder=FakeTranscoder(),
        transcription=transcription,
        submission_store=InMemorySubmissionStore(),
        limiter=TranscodeLimiter(2),
    )
    test_app.include_router(submissions_router)
    test_app.include_router(health_router)
    return test_app


@pytest.fixture()
def client(app: FastAPI):
    # Keep one event loop alive across requests so pipeline tasks keep running.
    with TestClient(app) as test_client:
        yield test_client

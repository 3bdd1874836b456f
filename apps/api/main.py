"""vidscribe API"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from routes.health import router as health_router
from routes.submissions import router as submissions_router
from vidscribe.config import Settings
from vidscribe.pipeline import create_ingest_pipeline
from vidscribe.utils.logging_setup import setup_logging

settings = Settings()
setup_logging(settings)
logger = logging.getLogger("vidscribe.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = settings
    app.state.pipeline = create_ingest_pipeline(settings)
    logger.info(
        "API starting (artifact_store=%s, transcription=%s, submissions=%s)",
        settings.artifact_store_backend,
        settings.transcription.provider,
        settings.submission_store_backend,
    )
    try:
        yield
    finally:
        await app.state.pipeline.aclose()


app = FastAPI(
    title="vidscribe API",
    description="Video upload -> audio -> transcript ingest API",
    version="0.1.0",
    lifespan=lifespan,
)


app.include_router(submissions_router)
app.include_router(health_router)

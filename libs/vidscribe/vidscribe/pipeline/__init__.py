"""Ingest pipeline.

Keep imports lazy: providers and storage pull in httpx/boto3, which callers that
only need the models should not pay for.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vidscribe.pipeline.factory import create_ingest_pipeline
    from vidscribe.pipeline.ingest import IngestPipeline
    from vidscribe.pipeline.tracker import JobStatusTracker

__all__ = ["IngestPipeline", "JobStatusTracker", "create_ingest_pipeline"]


def __getattr__(name: str) -> Any:
    if name == "IngestPipeline":
        from vidscribe.pipeline.ingest import IngestPipeline

        return IngestPipeline
    if name == "JobStatusTracker":
        from vidscribe.pipeline.tracker import JobStatusTracker

        return JobStatusTracker
    if name == "create_ingest_pipeline":
        from vidscribe.pipeline.factory import create_ingest_pipeline

        return create_ingest_pipeline
    raise AttributeError(name)

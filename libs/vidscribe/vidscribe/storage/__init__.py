"""Artifact storage backends."""

from vidscribe.config import Settings
from vidscribe.storage.artifact_store import ArtifactStore, LocalArtifactStore
from vidscribe.storage.s3_store import S3ArtifactStore
from vidscribe.storage.upload_api_store import UploadApiArtifactStore


def get_artifact_store(settings: Settings) -> ArtifactStore:
    backend = str(getattr(settings, "artifact_store_backend", "local") or "local").strip().lower()
    max_bytes = settings.artifact_max_bytes
    if backend == "s3":
        return S3ArtifactStore(
            endpoint=settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            bucket=settings.s3_bucket_name,
            max_bytes=max_bytes,
        )
    if backend == "upload_api":
        return UploadApiArtifactStore(
            settings.upload_api_base_url,
            timeout=float(settings.upload_api_timeout),
            max_bytes=max_bytes,
        )
    return LocalArtifactStore(settings.data_dir, max_bytes=max_bytes)


__all__ = [
    "ArtifactStore",
    "LocalArtifactStore",
    "S3ArtifactStore",
    "UploadApiArtifactStore",
    "get_artifact_store",
]

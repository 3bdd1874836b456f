"""S3/MinIO artifact store implementation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import StorageError
from vidscribe.models.artifact import AudioArtifact
from vidscribe.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

_QUOTA_CODES = {"QuotaExceeded", "EntityTooLarge", "XMinioStorageFull", "507"}


def _client_error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "") or "")


class S3ArtifactStore(ArtifactStore):
    """S3/MinIO artifact store for production."""

    name = "s3"

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        *,
        max_bytes: int | None = None,
    ) -> None:
        super().__init__(max_bytes=max_bytes)
        self.endpoint = endpoint.rstrip("/")
        self.access_key = access_key
        self.secret_key = secret_key
        self.bucket = bucket

        self._client: Any | None = None
        self._bucket_ready: bool = False
        self._bucket_lock = asyncio.Lock()

    @staticmethod
    def _key(submission_id: str, artifact: AudioArtifact) -> str:
        safe_id = str(submission_id or "").strip().replace("/", "_")
        return f"submissions/{safe_id}/{artifact.filename}"

    def _key_from_id(self, artifact_id: str) -> str:
        prefix = f"s3://{self.bucket}/"
        raw = str(artifact_id or "")
        return raw[len(prefix) :] if raw.startswith(prefix) else raw

    def _ensure_client(self) -> Any:
        if self._client is not None:
            return self._client

        import boto3

        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            aws_access_key_id=self.access_key,
            aws_secret_access_key=self.secret_key,
            config=Config(s3={"addressing_style": "path"}),
        )
        return self._client

    async def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return

        async with self._bucket_lock:
            if self._bucket_ready:
                return

            client = self._ensure_client()

            def _head_or_create() -> None:
                try:
                    client.head_bucket(Bucket=self.bucket)
                    return
                except ClientError as exc:
                    if _client_error_code(exc) not in {"404", "NoSuchBucket", "NotFound"}:
                        raise

                client.create_bucket(Bucket=self.bucket)

            await asyncio.to_thread(_head_or_create)
            self._bucket_ready = True

    async def save(self, submission_id: str, artifact: AudioArtifact) -> str:
        self._check_quota(artifact)
        key = self._key(submission_id, artifact)

        def _put() -> None:
            self._ensure_client().put_object(
                Bucket=self.bucket,
                Key=key,
                Body=artifact.data,
                ContentType=artifact.mime_type,
            )

        try:
            await self._ensure_bucket()
            await asyncio.to_thread(_put)
        except ClientError as exc:
            code = _client_error_code(exc)
            error_code = ErrorCode.QUOTA_EXCEEDED if code in _QUOTA_CODES else ErrorCode.UNAVAILABLE
            raise StorageError(
                error_code, f"put_object failed (key={key}, code={code}): {exc}", provider=self.name
            ) from exc
        except BotoCoreError as exc:
            raise StorageError(
                ErrorCode.UNAVAILABLE, f"s3 unreachable ({self.endpoint}): {exc}", provider=self.name
            ) from exc

        logger.debug("s3 artifact saved (bucket=%s, key=%s)", self.bucket, key)
        return f"s3://{self.bucket}/{key}"

    async def load(self, artifact_id: str) -> bytes:
        client = self._ensure_client()
        await self._ensure_bucket()
        key = self._key_from_id(artifact_id)

        def _get() -> bytes:
            resp = client.get_object(Bucket=self.bucket, Key=key)
            return bytes(resp["Body"].read())

        try:
            return await asyncio.to_thread(_get)
        except ClientError as exc:
            raise FileNotFoundError(f"S3 artifact not found: {key}") from exc

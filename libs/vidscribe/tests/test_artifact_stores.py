from __future__ import annotations

import errno
import io
from pathlib import Path

import httpx
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from vidscribe.config import Settings
from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import StorageError
from vidscribe.models.artifact import AudioArtifact
from vidscribe.storage import (
    LocalArtifactStore,
    S3ArtifactStore,
    UploadApiArtifactStore,
    get_artifact_store,
)


def _artifact(data: bytes = b"ID3-mp3-bytes") -> AudioArtifact:
    return AudioArtifact(data=data, mime_type="audio/mpeg", file_extension="mp3")


@pytest.mark.asyncio
async def test_local_store_save_and_load(tmp_path) -> None:
    store = LocalArtifactStore(str(tmp_path))

    artifact_id = await store.save("sub-1", _artifact())

    assert artifact_id == "submissions/sub-1/audio.mp3"
    assert (tmp_path / artifact_id).read_bytes() == b"ID3-mp3-bytes"
    assert await store.load(artifact_id) == b"ID3-mp3-bytes"


@pytest.mark.asyncio
async def test_local_store_quota_and_traversal(tmp_path) -> None:
    store = LocalArtifactStore(str(tmp_path / "store"), max_bytes=4)

    with pytest.raises(StorageError) as exc_info:
        await store.save("sub-1", _artifact(b"12345"))
    assert exc_info.value.error_code == ErrorCode.QUOTA_EXCEEDED

    (tmp_path / "secret.txt").write_text("x")
    with pytest.raises(FileNotFoundError):
        await store.load("../secret.txt")


@pytest.mark.asyncio
async def test_local_store_maps_disk_full(tmp_path, monkeypatch) -> None:
    store = LocalArtifactStore(str(tmp_path))

    def _disk_full(self, data):  # noqa: ANN001, ARG001
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(Path, "write_bytes", _disk_full)
    with pytest.raises(StorageError) as exc_info:
        await store.save("sub-1", _artifact())
    assert exc_info.value.error_code == ErrorCode.QUOTA_EXCEEDED

    def _read_only(self, data):  # noqa: ANN001, ARG001
        raise OSError(errno.EROFS, "Read-only file system")

    monkeypatch.setattr(Path, "write_bytes", _read_only)
    with pytest.raises(StorageError) as exc_info:
        await store.save("sub-1", _artifact())
    assert exc_info.value.error_code == ErrorCode.UNAVAILABLE


class _FakeS3Client:
    def __init__(self, *, put_error: Exception | None = None) -> None:
        self.put_error = put_error
        self.objects: dict[str, tuple[bytes, str]] = {}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, ContentType: str) -> dict:  # noqa: N803
        if self.put_error is not None:
            raise self.put_error
        self.objects[f"{Bucket}/{Key}"] = (bytes(Body), ContentType)
        return {}

    def get_object(self, *, Bucket: str, Key: str) -> dict:  # noqa: N803
        item = self.objects.get(f"{Bucket}/{Key}")
        if item is None:
            raise ClientError({"Error": {"Code": "NoSuchKey"}}, "GetObject")
        return {"Body": io.BytesIO(item[0])}


def _s3_store(client: _FakeS3Client) -> S3ArtifactStore:
    store = S3ArtifactStore("http://minio:9000", "ak", "sk", "bucket")
    store._client = client
    store._bucket_ready = True
    return store


@pytest.mark.asyncio
async def test_s3_store_save_and_load() -> None:
    client = _FakeS3Client()
    store = _s3_store(client)

    artifact_id = await store.save("sub-1", _artifact())

    assert artifact_id == "s3://bucket/submissions/sub-1/audio.mp3"
    assert client.objects["bucket/submissions/sub-1/audio.mp3"] == (b"ID3-mp3-bytes", "audio/mpeg")
    assert await store.load(artifact_id) == b"ID3-mp3-bytes"
    with pytest.raises(FileNotFoundError):
        await store.load("s3://bucket/submissions/other/audio.mp3")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (ClientError({"Error": {"Code": "QuotaExceeded"}}, "PutObject"), ErrorCode.QUOTA_EXCEEDED),
        (ClientError({"Error": {"Code": "XMinioStorageFull"}}, "PutObject"), ErrorCode.QUOTA_EXCEEDED),
        (ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject"), ErrorCode.UNAVAILABLE),
        (EndpointConnectionError(endpoint_url="http://minio:9000"), ErrorCode.UNAVAILABLE),
    ],
)
async def test_s3_store_error_mapping(error, expected) -> None:
    store = _s3_store(_FakeS3Client(put_error=error))

    with pytest.raises(StorageError) as exc_info:
        await store.save("sub-1", _artifact())
    assert exc_info.value.error_code == expected


def _upload_store(handler) -> UploadApiArtifactStore:  # noqa: ANN001
    return UploadApiArtifactStore("http://upload.local", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_upload_api_store_posts_multipart_file() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"video": {"id": "vid-42", "name": "audio.mp3"}})

    store = _upload_store(handler)
    try:
        artifact_id = await store.save("sub-1", _artifact())
    finally:
        await store.close()

    assert artifact_id == "vid-42"
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/videos"
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'name="file"; filename="audio.mp3"' in request.content
    assert b"Content-Type: audio/mpeg" in request.content
    assert b"ID3-mp3-bytes" in request.content


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("response", "expected"),
    [
        (httpx.Response(507), ErrorCode.QUOTA_EXCEEDED),
        (httpx.Response(413), ErrorCode.QUOTA_EXCEEDED),
        (httpx.Response(503), ErrorCode.UNAVAILABLE),
        (httpx.Response(200, json={"video": {}}), ErrorCode.UNAVAILABLE),
        (httpx.Response(200, content=b"<html>"), ErrorCode.UNAVAILABLE),
    ],
)
async def test_upload_api_store_error_mapping(response, expected) -> None:
    store = _upload_store(lambda _request: response)

    with pytest.raises(StorageError) as exc_info:
        await store.save("sub-1", _artifact())
    assert exc_info.value.error_code == expected
    await store.close()


@pytest.mark.asyncio
async def test_upload_api_store_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store = _upload_store(handler)
    with pytest.raises(StorageError) as exc_info:
        await store.save("sub-1", _artifact())
    assert exc_info.value.error_code == ErrorCode.UNAVAILABLE
    await store.close()


def test_get_artifact_store_by_backend(tmp_path) -> None:
    base = {"data_dir": str(tmp_path / "d"), "log_dir": str(tmp_path / "l")}

    assert isinstance(get_artifact_store(Settings(**base)), LocalArtifactStore)
    assert isinstance(get_artifact_store(Settings(artifact_store_backend="s3", **base)), S3ArtifactStore)
    upload = get_artifact_store(
        Settings(artifact_store_backend="upload_api", upload_api_base_url="http://x:3333/", **base)
    )
    assert isinstance(upload, UploadApiArtifactStore)
    assert upload.base_url == "http://x:3333"

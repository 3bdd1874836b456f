from __future__ import annotations

import pytest

from vidscribe.models.submission import Stage, StageChange, Submission, SubmissionError
from vidscribe.services.submission_store import InMemorySubmissionStore, RedisSubmissionStore


class FakeRedis:
    def __init__(self) -> None:
        self._kv: dict[str, str] = {}
        self.ttl: dict[str, int | None] = {}
        self.closed = False

    async def get(self, key: str) -> str | None:
        return self._kv.get(str(key))

    async def set(self, key: str, value: str, *, ex: int | None = None) -> bool:
        self._kv[str(key)] = str(value)
        self.ttl[str(key)] = ex
        return True

    async def delete(self, key: str) -> int:
        existed = str(key) in self._kv
        self._kv.pop(str(key), None)
        return 1 if existed else 0

    async def aclose(self) -> None:
        self.closed = True


def _failed_submission() -> Submission:
    sub = Submission(id="s1", prompt="ffmpeg")
    sub.history.append(StageChange(stage=Stage.RECEIVED, at=sub.created_at))
    sub.stage = Stage.FAILED
    sub.error = SubmissionError(stage=Stage.TRANSCODING, kind="NoAudioStream", message="muted")
    sub.version = 3
    return sub


@pytest.mark.asyncio
async def test_redis_store_roundtrip_with_ttl() -> None:
    redis = FakeRedis()
    store = RedisSubmissionStore(redis, ttl_seconds=3600)
    sub = _failed_submission()

    await store.save(sub)
    loaded = await store.get("s1")

    assert loaded == sub
    assert redis.ttl["vidscribe:submission:s1"] == 3600
    assert await store.get("unknown") is None

    assert await store.delete("s1") is True
    assert await store.delete("s1") is False
    await store.close()
    assert redis.closed is True


@pytest.mark.asyncio
async def test_in_memory_store_returns_copies() -> None:
    store = InMemorySubmissionStore()
    sub = _failed_submission()
    await store.save(sub)

    sub.prompt = "mutated"
    loaded = await store.get("s1")
    assert loaded is not None
    assert loaded.prompt == "ffmpeg"

    loaded.prompt = "also mutated"
    again = await store.get("s1")
    assert again is not None and again.prompt == "ffmpeg"

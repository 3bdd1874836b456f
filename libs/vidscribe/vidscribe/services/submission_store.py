"""Submission persistence (in-memory or Redis)."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod

from redis.asyncio import Redis

from vidscribe.models.submission import Submission


class SubmissionStore(ABC):
    @abstractmethod
    async def get(self, submission_id: str) -> Submission | None:
        """Return a snapshot, or None when unknown/expired."""

    @abstractmethod
    async def save(self, submission: Submission) -> None:
        """Persist a snapshot (overwrites)."""

    @abstractmethod
    async def delete(self, submission_id: str) -> bool:
        """Drop a submission; True when it existed."""

    async def close(self) -> None:  # pragma: no cover
        return None


class InMemorySubmissionStore(SubmissionStore):
    """Process-local store; entries live as long as the process."""

    def __init__(self) -> None:
        self._items: dict[str, Submission] = {}

    async def get(self, submission_id: str) -> Submission | None:
        item = self._items.get(str(submission_id))
        return item.snapshot() if item is not None else None

    async def save(self, submission: Submission) -> None:
        self._items[submission.id] = submission.snapshot()

    async def delete(self, submission_id: str) -> bool:
        return self._items.pop(str(submission_id), None) is not None


class RedisSubmissionStore(SubmissionStore):
    """JSON snapshots in Redis; the key TTL is the retention window."""

    def __init__(self, redis_client: Redis, *, ttl_seconds: int) -> None:
        self._redis = redis_client
        self._ttl_seconds = max(1, int(ttl_seconds))

    @staticmethod
    def key(submission_id: str) -> str:
        return f"vidscribe:submission:{submission_id}"

    async def get(self, submission_id: str) -> Submission | None:
        raw = await self._redis.get(self.key(submission_id))
        if not raw:
            return None
        return Submission.from_dict(json.loads(raw))

    async def save(self, submission: Submission) -> None:
        await self._redis.set(
            self.key(submission.id),
            json.dumps(submission.to_dict(), ensure_ascii=False),
            ex=self._ttl_seconds,
        )

    async def delete(self, submission_id: str) -> bool:
        removed = await self._redis.delete(self.key(submission_id))
        return bool(removed)

    async def close(self) -> None:
        await self._redis.aclose()

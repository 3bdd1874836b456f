"""Reusable services (submission persistence)."""

from vidscribe.config import Settings
from vidscribe.services.submission_store import (
    InMemorySubmissionStore,
    RedisSubmissionStore,
    SubmissionStore,
)


def get_submission_store(settings: Settings) -> SubmissionStore:
    backend = str(settings.submission_store_backend or "memory").strip().lower()
    if backend == "redis":
        from redis.asyncio import Redis

        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        return RedisSubmissionStore(redis, ttl_seconds=settings.submission_ttl_seconds)
    return InMemorySubmissionStore()


__all__ = [
    "InMemorySubmissionStore",
    "RedisSubmissionStore",
    "SubmissionStore",
    "get_submission_store",
]
